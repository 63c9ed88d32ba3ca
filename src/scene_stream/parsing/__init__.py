# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Incremental parsing of streamed scene payloads.

Available components:
- IncrementalParser: buffers fragments and extracts the structured scene
- normalize_choices: dedupe, truncate and renumber raw choices
- clean_text: best-effort removal of JSON artifacts from raw text
"""

from .cleanup import (
    clean_text,
    normalize_choices,
    recover_labelled_choices,
    strip_code_fence,
)
from .parser import IncrementalParser

__all__ = [
    "IncrementalParser",
    "clean_text",
    "normalize_choices",
    "recover_labelled_choices",
    "strip_code_fence",
]
