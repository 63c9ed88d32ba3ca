# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .params import AVAILABLE_MODELS, ModelParameters, ModelPreset
from .request import (
    ChatCompletionRequest,
    ChatMessage,
    PromptMessages,
    StoryPrompt,
    StreamRequest,
)
from .result import Err, GenerationOutcome, Ok
from .scene import (
    FALLBACK_CHOICE_TEXTS,
    MAX_CHOICES,
    Choice,
    GenerationResult,
    fallback_choices,
)

__all__ = [
    # Model parameters
    "AVAILABLE_MODELS",
    "FALLBACK_CHOICE_TEXTS",
    "MAX_CHOICES",
    "ChatCompletionRequest",
    "ChatMessage",
    # Scene types
    "Choice",
    # Results
    "Err",
    "GenerationOutcome",
    "GenerationResult",
    "ModelParameters",
    "ModelPreset",
    "Ok",
    # Request types
    "PromptMessages",
    "StoryPrompt",
    "StreamRequest",
    "fallback_choices",
]
