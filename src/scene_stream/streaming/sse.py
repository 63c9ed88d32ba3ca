# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Server-sent event record decoding for chat-completion streams.

Records look like ``data: {...json...}`` and the stream ends with
``data: [DONE]``. Lines are split by httpx; this module only decodes them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSERecord:
    """
    One decoded ``data:`` record.

    Attributes:
        content: Incremental content of the first choice, if any.
        done: True for the terminator record.
        error: Error message carried by an in-stream error envelope.
    """

    content: str | None = None
    done: bool = False
    error: str | None = None


_DONE = SSERecord(done=True)
_EMPTY = SSERecord()


def extract_content(envelope: Any) -> str | None:
    """Return ``choices[0].delta.content`` from a chunk envelope."""
    if not isinstance(envelope, dict):
        return None
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


def error_message(error: Any) -> str:
    """Message of an error envelope given as ``{"message": ...}`` or a bare string."""
    if isinstance(error, dict):
        return str(error.get("message") or "Unknown stream error")
    return str(error)


def decode_line(line: str) -> SSERecord | None:
    """
    Decode one line of the stream.

    Returns:
        None for lines that are not records (blank lines, comments, other
        fields) and for malformed JSON payloads, which are logged and
        skipped. Otherwise the decoded record.
    """
    line = line.strip()
    if not line or not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX) :].strip()
    if payload == DONE_SENTINEL:
        return _DONE

    try:
        envelope = json.loads(payload)
    except ValueError as e:
        logger.warning(f"Skipping malformed stream record ({e}): {payload[:80]!r}")
        return None

    if isinstance(envelope, dict):
        error = envelope.get("error")
        if isinstance(error, dict) or (isinstance(error, str) and error):
            return SSERecord(error=error_message(error))

    content = extract_content(envelope)
    return SSERecord(content=content) if content is not None else _EMPTY


__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "SSERecord",
    "decode_line",
    "error_message",
    "extract_content",
]
