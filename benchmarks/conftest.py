"""
Shared fixtures for benchmark tests.
"""

import json
from typing import Any, Dict, List

import httpx
import pytest

from scene_stream.config import GeneratorConfig
from scene_stream.credentials import InMemoryCredentialStore
from scene_stream.orchestrator import GenerationCallbacks, GenerationOrchestrator
from scene_stream.types.request import PromptMessages

BENCHMARK_SCENE = {
    "description": " ".join(["The corridor stretches on into shadow."] * 40),
    "choices": [
        {"id": 1, "text": "Follow the draft"},
        {"id": 2, "text": "Mark the wall and turn back"},
        {"id": 3, "text": "Wait for the echoes to settle"},
    ],
}


class BenchmarkPromptBuilder:
    """Minimal prompt builder for benchmarking."""

    def build(self, context: Any, choice: str) -> PromptMessages:
        return PromptMessages(system_message="Narrate.", user_message=choice)


def split_fragments(text: str, size: int = 4) -> List[str]:
    """Split text into provider-sized fragments."""
    return [text[i : i + size] for i in range(0, len(text), size)]


def encode_stream(fragments: List[str]) -> bytes:
    records = [
        "data: "
        + json.dumps({"choices": [{"delta": {"content": fragment}}]})
        + "\n\n"
        for fragment in fragments
    ]
    return ("".join(records) + "data: [DONE]\n\n").encode()


@pytest.fixture
def scene_text() -> str:
    """Serialized benchmark scene."""
    return json.dumps(BENCHMARK_SCENE)


@pytest.fixture
def scene_fragments(scene_text: str) -> List[str]:
    """Benchmark scene split into 4-character fragments."""
    return split_fragments(scene_text)


@pytest.fixture
def silent_callbacks() -> GenerationCallbacks:
    """Callbacks that do nothing, so only library overhead is measured."""
    return GenerationCallbacks(
        on_token=lambda _token: None,
        on_complete=lambda _choices: None,
        on_error=lambda _error: None,
    )


@pytest.fixture
async def benchmark_orchestrator(scene_fragments: List[str]):
    """Orchestrator streaming the benchmark scene from an in-process transport."""
    body = encode_stream(scene_fragments)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    orchestrator = GenerationOrchestrator(
        InMemoryCredentialStore({"bench": "sk-bench"}),
        BenchmarkPromptBuilder(),
        GeneratorConfig(
            base_url="https://benchmark.test/v1",
            max_requests=100000,  # High limit for benchmarks
        ),
        http_client=client,
    )
    yield orchestrator
    await orchestrator.aclose()
    await client.aclose()


@pytest.fixture
def sse_payload(scene_fragments: List[str]) -> Dict[str, Any]:
    """Encoded event stream and its fragment count."""
    return {"body": encode_stream(scene_fragments), "count": len(scene_fragments)}
