# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Choice normalization and best-effort text cleanup for model output.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from ..types.scene import MAX_CHOICES, Choice

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
_CODE_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_ID_ARTIFACT = re.compile(r'"?\bid"?\s*:\s*\d+\s*,?', re.IGNORECASE)
_FIELD_NAME = re.compile(r'"?\b(?:description|choices|text)"?\s*:\s*', re.IGNORECASE)
_FIELD_SEPARATOR = re.compile(r'"\s*,\s*(?=["{\[]|$)')
_JSON_PUNCTUATION = re.compile(r'[{}\[\]"]')
_TRAILING_COMMA = re.compile(r",\s*$", re.MULTILINE)
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")

_MARKDOWN_CHOICE = re.compile(
    r"\*\*Choice (\d+):\s*([^*]+?)\*\*\s*([^*]+?)(?=\*\*Choice|\s*$)"
)
_LABELLED_CHOICE = re.compile(r"(?:Choice|Option)\s*(\d+):\s*([^\n]+)", re.IGNORECASE)
_LABELLED_LINE = re.compile(r"(?:Choice|Option)\s*\d+:\s*[^\n]+\n*", re.IGNORECASE)


def normalize_choices(raw_choices: Iterable[Any]) -> list[Choice]:
    """
    Turn raw ``choices`` entries into at most three distinct choices.

    Entries may be ``{"text": ...}`` objects or bare strings; anything else
    and empty texts are skipped. Duplicates are removed by exact text match
    keeping the first occurrence, the list is truncated to three and ids are
    reassigned 1, 2, 3 in the surviving order (source ids are ignored).
    """
    seen: set[str] = set()
    texts: list[str] = []

    for entry in raw_choices:
        if isinstance(entry, str):
            text = entry
        elif isinstance(entry, dict) and isinstance(entry.get("text"), str):
            text = entry["text"]
        else:
            continue

        if not text.strip() or text in seen:
            continue
        seen.add(text)
        texts.append(text)
        if len(texts) == MAX_CHOICES:
            break

    return [Choice(id=index, text=text) for index, text in enumerate(texts, start=1)]


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapped around the whole text."""
    match = _CODE_FENCE.match(text.strip())
    return match.group(1) if match else text


def looks_structured(text: str) -> bool:
    """True when text starts like a JSON object, array or code fence."""
    return text.lstrip().startswith(("{", "[", "```"))


def clean_text(buffer: str) -> str:
    """
    Strip JSON punctuation and field-name artifacts from a raw buffer.

    Best effort only: used when the final buffer is not valid JSON, so the
    caller still gets readable prose. Artifacts are only removed when the
    buffer starts like JSON; plain prose keeps its quotes and brackets and
    only has whitespace and control characters normalized.
    """
    text = _CONTROL_CHARS.sub("", buffer)
    if looks_structured(text):
        text = strip_code_fence(text)
        text = text.replace("\\n", "\n").replace('\\"', '"')
        text = _ID_ARTIFACT.sub("", text)
        text = _FIELD_NAME.sub("", text)
        text = _FIELD_SEPARATOR.sub('"\n', text)
        text = _JSON_PUNCTUATION.sub("", text)
        text = _TRAILING_COMMA.sub("", text)

    lines = (_HORIZONTAL_SPACE.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def recover_labelled_choices(text: str) -> tuple[str, list[Choice]] | None:
    """
    Recover choices written as labelled text instead of JSON.

    Tries ``**Choice N: title** body`` markdown first, then plain
    ``Choice N: text`` / ``Option N: text`` lines.

    Returns:
        ``(description, choices)`` with the labelled parts removed from the
        description, or None if no labelled choice was found.
    """
    markdown = _MARKDOWN_CHOICE.findall(text)
    if markdown:
        choices = normalize_choices(
            f"{title.strip()} - {body.strip()}" for _, title, body in markdown
        )
        description = _MARKDOWN_CHOICE.sub("", text).strip()
        logger.debug(f"Recovered {len(choices)} markdown choices")
        return description, choices

    labelled = _LABELLED_CHOICE.findall(text)
    if labelled:
        choices = normalize_choices(body.strip() for _, body in labelled)
        description = _LABELLED_LINE.sub("", text).strip()
        logger.debug(f"Recovered {len(choices)} labelled choices")
        return description, choices

    return None


__all__ = [
    "clean_text",
    "looks_structured",
    "normalize_choices",
    "recover_labelled_choices",
    "strip_code_fence",
]
