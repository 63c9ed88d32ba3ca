"""
End-to-end integration tests for scene generation.

These tests drive complete generations from admission through streaming,
parsing and the terminal callback, over an in-process HTTP transport.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from scene_stream import (
    GenerationOrchestrator,
    GeneratorConfig,
    InMemoryCredentialStore,
    ModelParameters,
    StoryPrompt,
)
from scene_stream.exceptions import RateLimitExceededError, UnauthorizedError
from scene_stream.types.result import Err, Ok


def chunked(text: str, size: int) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


class TestFullGeneration:
    @pytest.mark.asyncio
    async def test_streamed_scene_reaches_caller(
        self, make_orchestrator, make_sse, recorder, scene_json, scene_payload
    ):
        fenced = f"```json\n{scene_json}\n```"
        fragments = chunked(fenced, 7)

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["stream"] is True
            assert body["messages"][1]["content"].endswith("Open the door")
            return httpx.Response(
                200,
                content=make_sse(fragments),
                headers={"content-type": "text/event-stream"},
            )

        orchestrator = make_orchestrator(handler)
        handle = await orchestrator.generate(
            StoryPrompt(context="a ruined keep", choice="Open the door"),
            ModelParameters.for_model("gpt-4"),
            recorder.callbacks,
            user_id="user-1",
        )
        outcome = await handle.result()

        assert isinstance(outcome, Ok)
        assert "".join(recorder.tokens) == fenced
        assert outcome.value.description == scene_payload["description"]
        assert [c.text for c in outcome.value.choices] == [
            c["text"] for c in scene_payload["choices"]
        ]
        assert recorder.completions == [list(outcome.value.choices)]
        assert recorder.events[-1] == "complete"
        assert orchestrator.metrics.completions == 1
        assert orchestrator.metrics.fragments == len(fragments)

    @pytest.mark.asyncio
    async def test_recovers_from_transient_server_error(
        self, make_orchestrator, make_sse, recorder, scene_json, fake_sleep
    ):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                return httpx.Response(503, json={"error": {"message": "overloaded"}})
            return httpx.Response(200, content=make_sse([scene_json]))

        orchestrator = make_orchestrator(handler)
        handle = await orchestrator.generate(
            StoryPrompt(context=None, choice="Wait"),
            ModelParameters(),
            recorder.callbacks,
            user_id="user-1",
        )
        outcome = await handle.result()

        assert isinstance(outcome, Ok)
        assert calls == 2
        fake_sleep.assert_awaited_once()
        assert recorder.errors == []
        assert orchestrator.metrics.retries == 1

    @pytest.mark.asyncio
    async def test_rejected_key_fails_once(self, make_orchestrator, recorder):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                401, json={"error": {"message": "Incorrect API key provided"}}
            )

        orchestrator = make_orchestrator(handler)
        handle = await orchestrator.generate(
            StoryPrompt(context=None, choice="Wait"),
            ModelParameters(),
            recorder.callbacks,
            user_id="user-1",
        )
        outcome = await handle.result()

        assert isinstance(outcome, Err)
        assert isinstance(outcome.error, UnauthorizedError)
        assert recorder.terminal_count == 1
        assert recorder.tokens == []


class TestConcurrentGenerations:
    @pytest.mark.asyncio
    async def test_window_admits_three_then_rejects(
        self, make_orchestrator, make_sse, recorder, scene_json
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=make_sse(chunked(scene_json, 16)))

        orchestrator = make_orchestrator(handler)
        prompt = StoryPrompt(context=None, choice="Look around")
        handles = [
            await orchestrator.generate(
                prompt, ModelParameters(), recorder.callbacks, user_id="user-1"
            )
            for _ in range(3)
        ]

        with pytest.raises(RateLimitExceededError) as exc_info:
            await orchestrator.generate(
                prompt, ModelParameters(), recorder.callbacks, user_id="user-1"
            )
        assert exc_info.value.retry_after is not None

        outcomes = await asyncio.gather(*(h.result() for h in handles))

        assert all(isinstance(o, Ok) for o in outcomes)
        assert len(recorder.completions) == 3
        assert recorder.errors == []
        assert orchestrator.metrics.rejections == 1
        assert orchestrator.active_generations == 0

    @pytest.mark.asyncio
    async def test_sessions_do_not_share_text(
        self, make_orchestrator, make_sse, recorder
    ):
        scenes: dict[str, dict[str, Any]] = {
            choice: {
                "description": f"You chose to {choice.lower()}.",
                "choices": [{"id": 1, "text": f"Keep going after {choice}"}],
            }
            for choice in ("Run", "Hide")
        }

        def handler(request: httpx.Request) -> httpx.Response:
            user_message = json.loads(request.content)["messages"][1]["content"]
            choice = user_message.rsplit(": ", 1)[1]
            text = json.dumps(scenes[choice])
            return httpx.Response(200, content=make_sse(chunked(text, 5)))

        orchestrator = make_orchestrator(handler)
        handles = {
            choice: await orchestrator.generate(
                StoryPrompt(context=None, choice=choice),
                ModelParameters(),
                recorder.callbacks,
                user_id="user-1",
            )
            for choice in scenes
        }

        for choice, handle in handles.items():
            outcome = await handle.result()
            assert outcome.unwrap().description == scenes[choice]["description"]


class TestOrchestratorLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_cancels_running_generations(
        self, make_stalled, make_sse, prompt_builder, recorder
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, content=make_stalled(make_sse(["The hall"], done=False))
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with GenerationOrchestrator(
            InMemoryCredentialStore({"user-1": "sk-test"}),
            prompt_builder,
            GeneratorConfig(base_url="https://llm.test/v1", request_timeout=5.0),
            http_client=client,
        ) as orchestrator:
            handle = await orchestrator.generate(
                StoryPrompt(context=None, choice="Listen"),
                ModelParameters(),
                recorder.callbacks,
                user_id="user-1",
            )
            while not recorder.tokens:
                await asyncio.sleep(0.01)

        outcome = await handle.result()
        await client.aclose()

        assert isinstance(outcome, Err)
        assert recorder.tokens == ["The hall"]
        assert recorder.terminal_count == 1

    @pytest.mark.asyncio
    async def test_validate_credential(self, make_orchestrator):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/models"
            if request.headers["authorization"] == "Bearer sk-good":
                return httpx.Response(200, json={"data": []})
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        orchestrator = make_orchestrator(handler)

        assert (await orchestrator.validate_credential("sk-good")).valid is True
        rejected = await orchestrator.validate_credential("sk-bad")
        assert rejected.valid is False
        assert rejected.error == "bad key"
