# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Discriminated result type for asynchronous generation outcomes.

Failures that happen after the network operation starts are delivered as
``Err`` values instead of being raised, so retry and cancellation stay
explicit in the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from ..exceptions import GenerationError
from .scene import GenerationResult

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying the classified failure."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        """Raise the carried failure."""
        raise self.error


GenerationOutcome = Union[Ok[GenerationResult], Err[GenerationError]]


__all__ = ["Err", "GenerationOutcome", "Ok"]
