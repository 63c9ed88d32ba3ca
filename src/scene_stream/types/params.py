# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Model parameter types and the catalog of known model presets."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ModelPreset:
    """Recommended sampling settings for a known model."""

    id: str
    name: str
    description: str
    max_tokens: int
    temperature: float
    presence_penalty: float
    frequency_penalty: float
    cost_per_1k_tokens: float
    recommended: bool = False


AVAILABLE_MODELS: dict[str, ModelPreset] = {
    "gpt-4-turbo-preview": ModelPreset(
        id="gpt-4-turbo-preview",
        name="GPT-4 Turbo",
        description="Most capable model, best for creative storytelling and complex narratives",
        max_tokens=4096,
        temperature=0.8,
        presence_penalty=0.6,
        frequency_penalty=0.3,
        cost_per_1k_tokens=0.01,
        recommended=True,
    ),
    "gpt-4": ModelPreset(
        id="gpt-4",
        name="GPT-4",
        description="High-quality model with consistent narrative generation",
        max_tokens=8192,
        temperature=0.7,
        presence_penalty=0.5,
        frequency_penalty=0.3,
        cost_per_1k_tokens=0.03,
        recommended=True,
    ),
    "gpt-3.5-turbo": ModelPreset(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        description="Fast and cost-effective for simpler narratives",
        max_tokens=4096,
        temperature=0.7,
        presence_penalty=0.4,
        frequency_penalty=0.2,
        cost_per_1k_tokens=0.001,
        recommended=False,
    ),
}


class ModelParameters(BaseModel):
    """
    Sampling parameters for a single request.

    Immutable once built; the orchestrator copies them verbatim into the
    wire payload.
    """

    model_config = ConfigDict(frozen=True)

    model: str = "gpt-4"
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, gt=0)
    presence_penalty: float = Field(default=0.6, ge=-2.0, le=2.0)
    frequency_penalty: float = Field(default=0.3, ge=-2.0, le=2.0)

    @classmethod
    def for_model(cls, model_id: str) -> ModelParameters:
        """
        Build parameters from a catalog preset.

        Raises:
            KeyError: If the model is not in AVAILABLE_MODELS.
        """
        preset = AVAILABLE_MODELS[model_id]
        return cls(
            model=preset.id,
            temperature=preset.temperature,
            max_tokens=preset.max_tokens,
            presence_penalty=preset.presence_penalty,
            frequency_penalty=preset.frequency_penalty,
        )


__all__ = ["AVAILABLE_MODELS", "ModelParameters", "ModelPreset"]
