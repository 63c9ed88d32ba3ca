# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request types: the caller's story prompt and the chat-completion wire payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from .params import ModelParameters


@dataclass
class StoryPrompt:
    """
    What the caller asks to continue.

    Attributes:
        context: Opaque story context handed to the prompt builder
            (genre, character, current scene, history...).
        choice: The choice the player just made.
    """

    context: Any
    choice: str


@dataclass(frozen=True)
class PromptMessages:
    """System and user messages produced by a prompt builder."""

    system_message: str
    user_message: str


@dataclass(frozen=True)
class StreamRequest:
    """
    Everything the transport needs to open one stream.

    Attributes:
        url: Absolute URL of the chat-completions endpoint.
        headers: Request headers, including the bearer authorization.
        payload: JSON body.
    """

    url: str
    headers: dict[str, str] = field(repr=False)
    payload: dict[str, Any]


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user"]
    content: str


class ChatCompletionRequest(BaseModel):
    """Body of a streaming chat-completion request."""

    model: str
    messages: list[ChatMessage]
    temperature: float
    max_tokens: int
    presence_penalty: float
    frequency_penalty: float
    stream: bool = True

    @classmethod
    def build(
        cls, messages: PromptMessages, params: ModelParameters
    ) -> ChatCompletionRequest:
        return cls(
            model=params.model,
            messages=[
                ChatMessage(role="system", content=messages.system_message),
                ChatMessage(role="user", content=messages.user_message),
            ],
            temperature=params.temperature,
            max_tokens=params.max_tokens,
            presence_penalty=params.presence_penalty,
            frequency_penalty=params.frequency_penalty,
        )


__all__ = [
    "ChatCompletionRequest",
    "ChatMessage",
    "PromptMessages",
    "StoryPrompt",
    "StreamRequest",
]
