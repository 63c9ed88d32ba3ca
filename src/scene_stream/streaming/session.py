# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Stream session state for a single generation attempt.

This module provides the StreamSession dataclass that tracks one attempt
through its lifecycle: the growing buffer (through its parser), the end
signal, the failure if any and timing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..exceptions import GenerationError
from ..parsing.parser import IncrementalParser
from ..types.scene import GenerationResult


@dataclass
class StreamSession:
    """
    State of one generation attempt.

    Created by the orchestrator at the start of an attempt and discarded at
    its terminal transition. Never shared between generate() calls.

    Attributes:
        request_id: Identifier of the generate() call this attempt serves
        attempt: Attempt number, starting at 1
        parser: Incremental parser owning the text buffer
        created_at: Monotonic timestamp when the attempt started

    Runtime tracking attributes:
        fragment_count: Number of fragments received
        last_fragment_at: Monotonic timestamp of the last fragment
        ended: True once the transport reported end-of-stream
        failure: Failure reported by the transport, if any
        result: Final result once completed
    """

    request_id: str
    attempt: int
    parser: IncrementalParser = field(default_factory=IncrementalParser)
    created_at: float = field(default_factory=time.monotonic)

    fragment_count: int = field(default=0, repr=False)
    last_fragment_at: float | None = field(default=None, repr=False)
    extracted_early: bool = field(default=False, repr=False)
    ended: bool = field(default=False, repr=False)
    failure: GenerationError | None = field(default=None, repr=False)
    result: GenerationResult | None = field(default=None, repr=False)

    def record_fragment(self, fragment: str) -> bool:
        """
        Buffer a fragment and attempt a speculative extraction.

        Returns:
            True if this fragment completed the structured payload for the
            first time.
        """
        self.last_fragment_at = time.monotonic()
        self.fragment_count += 1
        self.parser.feed(fragment)

        if self.extracted_early:
            return False
        if self.parser.try_extract() is not None:
            self.extracted_early = True
            return True
        return False

    def mark_ended(self) -> None:
        self.ended = True

    def mark_failed(self, failure: GenerationError) -> None:
        self.failure = failure

    def complete(self) -> GenerationResult:
        """Finalize the parser and keep its result."""
        if self.result is None:
            self.result = self.parser.finalize()
        return self.result

    @property
    def completed(self) -> bool:
        return self.result is not None

    @property
    def duration_seconds(self) -> float:
        return time.monotonic() - self.created_at


__all__ = ["StreamSession"]
