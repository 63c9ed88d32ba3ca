"""
Shared fixtures for the scene_stream test suite.

The network is replaced with ``httpx.MockTransport``; handlers build
chat-completion streams with ``sse_body``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from scene_stream.config import GeneratorConfig
from scene_stream.credentials import InMemoryCredentialStore
from scene_stream.exceptions import GenerationError
from scene_stream.orchestrator import GenerationCallbacks, GenerationOrchestrator
from scene_stream.types.request import PromptMessages
from scene_stream.types.scene import Choice

BASE_URL = "https://llm.test/v1"

SCENE_PAYLOAD = {
    "description": "The lantern gutters as you step into the vault.",
    "choices": [
        {"id": 1, "text": "Light a torch"},
        {"id": 2, "text": "Search the shelves"},
        {"id": 3, "text": "Call out into the dark"},
    ],
}


def sse_record(content: str) -> str:
    envelope = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(envelope, ensure_ascii=False)}\n\n"


def sse_body(fragments: Iterable[str], done: bool = True) -> bytes:
    """Encode fragments as a chat-completion event stream."""
    body = "".join(sse_record(fragment) for fragment in fragments)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode()


class StaticPromptBuilder:
    """Prompt builder returning fixed messages."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, str]] = []

    def build(self, context: Any, choice: str) -> PromptMessages:
        self.calls.append((context, choice))
        return PromptMessages(
            system_message="You are a narrator. Reply with JSON.",
            user_message=f"Context: {context}\nPlayer chose: {choice}",
        )


class CallbackRecorder:
    """Collects everything delivered to a set of generation callbacks."""

    def __init__(self) -> None:
        self.tokens: list[str] = []
        self.completions: list[list[Choice]] = []
        self.errors: list[GenerationError] = []
        self.events: list[str] = []

    def on_token(self, token: str) -> None:
        self.tokens.append(token)
        self.events.append("token")

    def on_complete(self, choices: list[Choice]) -> None:
        self.completions.append(choices)
        self.events.append("complete")

    def on_error(self, error: GenerationError) -> None:
        self.errors.append(error)
        self.events.append("error")

    @property
    def callbacks(self) -> GenerationCallbacks:
        return GenerationCallbacks(
            on_token=self.on_token,
            on_complete=self.on_complete,
            on_error=self.on_error,
        )

    @property
    def terminal_count(self) -> int:
        return len(self.completions) + len(self.errors)


async def stalled_stream(*chunks: bytes, stall: float = 30.0) -> AsyncIterator[bytes]:
    """Yield ``chunks`` and then hang, simulating a provider that stops sending."""
    for data in chunks:
        yield data
    await asyncio.sleep(stall)


@pytest.fixture
def make_sse() -> Callable[..., bytes]:
    return sse_body


@pytest.fixture
def make_stalled() -> Callable[..., AsyncIterator[bytes]]:
    return stalled_stream


@pytest.fixture
def scene_payload() -> dict[str, Any]:
    return json.loads(json.dumps(SCENE_PAYLOAD))


@pytest.fixture
def scene_json() -> str:
    return json.dumps(SCENE_PAYLOAD)


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def prompt_builder() -> StaticPromptBuilder:
    return StaticPromptBuilder()


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore({"user-1": "sk-test"})


@pytest.fixture
def config() -> GeneratorConfig:
    return GeneratorConfig(
        base_url=BASE_URL,
        request_timeout=2.0,
        connect_timeout=0.5,
    )


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Replaces asyncio.sleep between retries; records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
async def make_orchestrator(
    credential_store: InMemoryCredentialStore,
    prompt_builder: StaticPromptBuilder,
    config: GeneratorConfig,
    fake_sleep: AsyncMock,
) -> AsyncIterator[Callable[..., GenerationOrchestrator]]:
    """Factory building orchestrators whose network is a MockTransport handler."""
    created: list[tuple[GenerationOrchestrator, httpx.AsyncClient]] = []

    def factory(handler: Callable[..., Any], **kwargs: Any) -> GenerationOrchestrator:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("sleep", fake_sleep)
        orchestrator = GenerationOrchestrator(
            kwargs.pop("credential_store", credential_store),
            kwargs.pop("prompt_builder", prompt_builder),
            kwargs.pop("config", config),
            http_client=client,
            **kwargs,
        )
        created.append((orchestrator, client))
        return orchestrator

    yield factory

    for orchestrator, client in created:
        await orchestrator.aclose()
        await client.aclose()
