# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Incremental scene parser.

The parser receives text fragments as they stream in and speculatively
reconstructs the structured scene from the growing buffer. A failed parse is
never an error, only a signal to keep buffering.

Key Design Decisions:
- Fragments are kept in a list and joined lazily, so appending is O(1)
- Brace depth is tracked over each new fragment only (string and escape
  aware); a full ``json.loads`` is attempted only when the top-level object
  is balanced and the buffer changed since the last attempt
- Choice normalization is shared by the speculative and final paths
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..exceptions import MalformedResponseError
from ..types.scene import GenerationResult, fallback_choices
from .cleanup import (
    clean_text,
    normalize_choices,
    recover_labelled_choices,
    strip_code_fence,
)

logger = logging.getLogger(__name__)


class IncrementalParser:
    """
    Buffers streamed fragments and extracts a GenerationResult.

    Usage:
        parser = IncrementalParser()
        for fragment in fragments:
            parser.feed(fragment)
            parser.try_extract()  # None until the JSON object is complete
        result = parser.finalize()
    """

    __slots__ = (
        "_depth",
        "_dirty",
        "_escaped",
        "_final",
        "_in_string",
        "_joined",
        "_length",
        "_opened",
        "_parts",
        "_result",
        "parse_attempts",
        "recover_labelled",
    )

    def __init__(self, recover_labelled_choices: bool = False) -> None:
        """
        Initialize an empty parser.

        Args:
            recover_labelled_choices: On the final path, look for
                ``Choice N:`` style lists before falling back to the
                generic choices.
        """
        self.recover_labelled = recover_labelled_choices
        self._parts: list[str] = []
        self._joined: str | None = ""
        self._length = 0

        # Structural scanner state
        self._depth = 0
        self._opened = False
        self._in_string = False
        self._escaped = False

        self._dirty = False
        self._result: GenerationResult | None = None
        self._final: GenerationResult | None = None
        self.parse_attempts = 0

    @property
    def buffer(self) -> str:
        """The full text received so far."""
        if self._joined is None:
            self._joined = "".join(self._parts)
            self._parts = [self._joined]
        return self._joined

    def __len__(self) -> int:
        return self._length

    @property
    def is_balanced(self) -> bool:
        """True when a top-level JSON object has been opened and closed."""
        return self._opened and self._depth == 0 and not self._in_string

    def feed(self, fragment: str) -> None:
        """Append a fragment to the buffer. Never raises."""
        if not fragment:
            return
        self._parts.append(fragment)
        self._joined = None
        self._length += len(fragment)
        self._dirty = True
        self._scan(fragment)

    def _scan(self, fragment: str) -> None:
        for ch in fragment:
            if self._in_string:
                if self._escaped:
                    self._escaped = False
                elif ch == "\\":
                    self._escaped = True
                elif ch == '"':
                    self._in_string = False
            elif ch == "{":
                self._depth += 1
                self._opened = True
            elif ch == "}":
                if self._depth > 0:
                    self._depth -= 1
            elif ch == '"' and self._depth > 0:
                # Quotes in prose outside any object do not open strings
                self._in_string = True

    def try_extract(self) -> GenerationResult | None:
        """
        Attempt to parse the whole buffer as the scene JSON object.

        Returns:
            The normalized result, or None while the buffer is incomplete,
            not valid JSON, or lacks a ``choices`` array.
        """
        if not self.is_balanced:
            return None
        if self._dirty:
            self._dirty = False
            self._result = self._parse(self.buffer)
        return self._result

    def _parse(self, text: str) -> GenerationResult | None:
        self.parse_attempts += 1
        try:
            data: Any = json.loads(strip_code_fence(text.strip()))
        except (ValueError, RecursionError):
            return None

        if not isinstance(data, dict):
            return None
        description = data.get("description")
        raw_choices = data.get("choices")
        if not isinstance(description, str) or not isinstance(raw_choices, list):
            return None

        choices = normalize_choices(raw_choices)
        if not choices:
            logger.debug("Parsed payload has no usable choices, using fallback set")
            return GenerationResult(
                description=description.strip(),
                choices=fallback_choices(),
                fallback=True,
            )

        return GenerationResult(description=description.strip(), choices=choices)

    def finalize(self, strict: bool = False) -> GenerationResult:
        """
        Produce the final result once the stream has ended.

        Falls back to the cleaned buffer text paired with the generic
        fallback choices when the buffer never formed a valid scene.

        Args:
            strict: Raise instead of falling back (used by diagnostics that
                want to see malformed output as a failure).

        Raises:
            MalformedResponseError: Only when ``strict`` is set and the
                buffer could not be parsed.
        """
        if self._final is not None:
            return self._final

        result = self._parse(self.buffer) if self._dirty else self._result
        self._dirty = False
        if result is not None:
            self._result = result
            self._final = result
            return result

        if strict:
            raise MalformedResponseError(
                f"Response is not a valid scene payload ({self._length} chars)"
            )

        text = clean_text(self.buffer)
        if self.recover_labelled:
            recovered = recover_labelled_choices(text)
            if recovered is not None and recovered[1]:
                description, choices = recovered
                self._final = GenerationResult(
                    description=description, choices=choices
                )
                return self._final

        logger.warning(
            f"Could not parse response ({self._length} chars, "
            f"{self.parse_attempts} attempts), using fallback choices"
        )
        self._final = GenerationResult(
            description=text, choices=fallback_choices(), fallback=True
        )
        return self._final


__all__ = ["IncrementalParser"]
