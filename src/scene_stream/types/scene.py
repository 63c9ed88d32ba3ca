# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scene result types.

A generated scene is a description plus the player choices offered at the
end of it. Both are validated with Pydantic since they are built from
untrusted model output.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MAX_CHOICES = 3


class Choice(BaseModel):
    """A single player choice."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    text: str


class GenerationResult(BaseModel):
    """
    Structured result of one generation.

    Attributes:
        description: The scene description shown to the player.
        choices: At most three choices with sequential ids starting at 1 and
            pairwise distinct texts.
        fallback: True when the response could not be parsed and the generic
            fallback choices were substituted.
    """

    model_config = ConfigDict(frozen=True)

    description: str
    choices: list[Choice]
    fallback: bool = False


# Offered when the model output could not be parsed at all
FALLBACK_CHOICE_TEXTS: tuple[str, ...] = (
    "Investigate further",
    "Take action",
    "Consider alternatives",
)


def fallback_choices() -> list[Choice]:
    """Return a fresh copy of the generic fallback choices."""
    return [
        Choice(id=index, text=text)
        for index, text in enumerate(FALLBACK_CHOICE_TEXTS, start=1)
    ]


__all__ = [
    "FALLBACK_CHOICE_TEXTS",
    "MAX_CHOICES",
    "Choice",
    "GenerationResult",
    "fallback_choices",
]
