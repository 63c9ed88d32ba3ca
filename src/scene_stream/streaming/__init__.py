# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Streaming transport for chat-completion responses.

This module provides:
- StreamTransport: opens a stream, applies a deadline and forwards fragments
- StreamHandle / StreamOutcome: waiting on and cancelling an open stream
- StreamSession: per-attempt buffer and lifecycle state
- SSE record decoding helpers
- check_credential: validation against the model-listing endpoint
"""

from .session import StreamSession
from .sse import SSERecord, decode_line, error_message, extract_content
from .transport import (
    StreamHandle,
    StreamOutcome,
    StreamTransport,
    failure_from_response,
)
from .validation import CredentialCheck, check_credential

__all__ = [
    "CredentialCheck",
    "SSERecord",
    "StreamHandle",
    "StreamOutcome",
    "StreamSession",
    "StreamTransport",
    "check_credential",
    "decode_line",
    "error_message",
    "extract_content",
    "failure_from_response",
]
