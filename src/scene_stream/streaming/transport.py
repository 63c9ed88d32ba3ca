# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Chunked HTTP transport for streaming chat completions.

StreamTransport opens one streaming POST per call to ``open()``, decodes the
``data:`` records as they arrive and reports through three callbacks:

- ``on_fragment(text)`` for every incremental content fragment, in order
- ``on_end()`` exactly once when the body is exhausted or ``[DONE]`` arrives
- ``on_failure(error)`` exactly once for HTTP errors, network errors and
  deadline expiry

After a terminal callback, or after ``cancel()``, no further callback fires.
The read loop calls the callbacks synchronously, so fragments are delivered
strictly in arrival order.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..exceptions import (
    GenerationError,
    GenerationTimeoutError,
    UnknownGenerationError,
    error_for_status,
)
from ..retry import parse_retry_after
from ..types.request import StreamRequest
from .sse import decode_line

logger = logging.getLogger(__name__)

FragmentCallback = Callable[[str], None]
EndCallback = Callable[[], None]
FailureCallback = Callable[[GenerationError], None]


class StreamOutcome(enum.Enum):
    """Terminal state of a stream."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class StreamHandle:
    """
    Handle to one open stream.

    The handle is the single gate for callbacks: every delivery checks the
    terminal flag first, and the first terminal transition wins.
    """

    __slots__ = (
        "_done",
        "_on_end",
        "_on_failure",
        "_on_fragment",
        "_task",
        "_timer",
        "connected",
        "failure",
        "fragments_delivered",
        "outcome",
        "request",
    )

    def __init__(
        self,
        request: StreamRequest,
        on_fragment: FragmentCallback,
        on_end: EndCallback,
        on_failure: FailureCallback,
    ) -> None:
        self.request = request
        self._on_fragment = on_fragment
        self._on_end = on_end
        self._on_failure = on_failure
        self._task: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._done = asyncio.Event()

        self.connected = False
        self.fragments_delivered = 0
        self.outcome = StreamOutcome.PENDING
        self.failure: GenerationError | None = None

    @property
    def closed(self) -> bool:
        """True once the stream reached a terminal state."""
        return self.outcome is not StreamOutcome.PENDING

    async def wait(self) -> StreamOutcome:
        """Wait for the terminal state and return it."""
        await self._done.wait()
        return self.outcome

    def _deliver_fragment(self, fragment: str) -> None:
        if self.closed:
            return
        self.fragments_delivered += 1
        self._on_fragment(fragment)

    def _finish(
        self, outcome: StreamOutcome, failure: GenerationError | None = None
    ) -> bool:
        """Record the terminal state. Returns False if already terminal."""
        if self.closed:
            return False
        self.outcome = outcome
        self.failure = failure
        if self._timer is not None:
            self._timer.cancel()
        self._done.set()
        return True

    def _end(self) -> None:
        if self._finish(StreamOutcome.COMPLETED):
            self._on_end()

    def _fail(self, failure: GenerationError, outcome: StreamOutcome) -> None:
        if self._finish(outcome, failure):
            self._on_failure(failure)


class StreamTransport:
    """
    Opens streaming chat-completion requests over a shared httpx client.

    Example:
        transport = StreamTransport(httpx.AsyncClient())
        handle = transport.open(request, on_fragment, on_end, on_failure, 30.0)
        await handle.wait()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        connect_timeout: float = 10.0,
    ) -> None:
        """
        Initialize the transport.

        Args:
            client: HTTP client used for all streams (not owned)
            connect_timeout: Seconds allowed to establish a connection
        """
        self._client = client
        self.connect_timeout = connect_timeout

    def open(
        self,
        request: StreamRequest,
        on_fragment: FragmentCallback,
        on_end: EndCallback,
        on_failure: FailureCallback,
        deadline: float | None = None,
    ) -> StreamHandle:
        """
        Start streaming ``request`` in a background task.

        Must be called from a running event loop.

        Args:
            request: URL, headers and payload of the stream
            on_fragment: Called with each content fragment
            on_end: Called once when the stream completes
            on_failure: Called once with the classified failure
            deadline: Overall seconds allowed for the whole stream

        Returns:
            A StreamHandle for waiting on or cancelling the stream.
        """
        loop = asyncio.get_running_loop()
        handle = StreamHandle(request, on_fragment, on_end, on_failure)
        handle._task = loop.create_task(self._run(handle))
        if deadline is not None:
            handle._timer = loop.call_later(deadline, self._expire, handle, deadline)
        return handle

    def cancel(self, handle: StreamHandle) -> None:
        """Abort the stream. Idempotent; no callback fires afterwards."""
        if handle._finish(StreamOutcome.CANCELLED):
            logger.debug(f"Stream to {handle.request.url} cancelled")
        if handle._task is not None and not handle._task.done():
            handle._task.cancel()

    def _expire(self, handle: StreamHandle, deadline: float) -> None:
        if handle.closed:
            return
        logger.warning(
            f"Stream deadline of {deadline:.1f}s elapsed after "
            f"{handle.fragments_delivered} fragments"
        )
        handle._fail(
            GenerationTimeoutError(f"Request timed out after {deadline:.1f}s"),
            StreamOutcome.TIMED_OUT,
        )
        if handle._task is not None and not handle._task.done():
            handle._task.cancel()

    async def _run(self, handle: StreamHandle) -> None:
        request = handle.request
        timeout = httpx.Timeout(None, connect=self.connect_timeout)

        try:
            async with self._client.stream(
                "POST",
                request.url,
                headers=request.headers,
                json=request.payload,
                timeout=timeout,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    failure = failure_from_response(response)
                    logger.info(
                        f"Provider returned HTTP {response.status_code}: {failure.message}"
                    )
                    handle._fail(failure, StreamOutcome.FAILED)
                    return

                handle.connected = True
                logger.debug(f"Stream connected to {request.url}")
                await self._read_records(handle, response)

            handle._end()

        except asyncio.CancelledError:
            # Whoever cancelled already recorded the terminal state
            if not handle.closed:
                handle._finish(StreamOutcome.CANCELLED)
            raise
        except httpx.ConnectTimeout as e:
            handle._fail(
                GenerationTimeoutError(
                    f"Connection timed out: {e}", connect_phase=True
                ),
                StreamOutcome.TIMED_OUT,
            )
        except httpx.TimeoutException as e:
            handle._fail(
                GenerationTimeoutError(f"Request timed out: {e}"),
                StreamOutcome.TIMED_OUT,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Stream transport error: {type(e).__name__}: {e}")
            handle._fail(
                UnknownGenerationError(str(e) or type(e).__name__),
                StreamOutcome.FAILED,
            )
        except Exception as e:
            logger.error(f"Unexpected stream error: {type(e).__name__}: {e}")
            handle._fail(
                UnknownGenerationError(str(e) or "An unknown error occurred"),
                StreamOutcome.FAILED,
            )

    async def _read_records(
        self, handle: StreamHandle, response: httpx.Response
    ) -> None:
        """Forward fragments until the body ends, [DONE] arrives or the handle closes."""
        async for line in response.aiter_lines():
            if self._dispatch(handle, line):
                return

    def _dispatch(self, handle: StreamHandle, line: str) -> bool:
        """Handle one line. Returns True when the stream should stop reading."""
        record = decode_line(line)
        if record is None:
            return False
        if record.done:
            return True
        if record.error is not None:
            handle._fail(UnknownGenerationError(record.error), StreamOutcome.FAILED)
            return True
        if record.content is not None:
            handle._deliver_fragment(record.content)
        return handle.closed


def failure_from_response(response: httpx.Response) -> GenerationError:
    """Classify a non-2xx response, preserving the provider's message."""
    message: str | None = None
    try:
        body: Any = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            message = str(error["message"])
        elif isinstance(error, str) and error:
            message = error
        elif body.get("message"):
            message = str(body["message"])

    if message is None:
        reason = response.reason_phrase or "error"
        message = f"Provider API error: {reason}"

    retry_after = parse_retry_after(response.headers.get("retry-after"))
    if retry_after is None:
        retry_after_ms = response.headers.get("retry-after-ms")
        if retry_after_ms:
            try:
                retry_after = max(0.0, float(retry_after_ms) / 1000.0)
            except ValueError:
                retry_after = None

    return error_for_status(response.status_code, message, retry_after)


__all__ = [
    "EndCallback",
    "FailureCallback",
    "FragmentCallback",
    "StreamHandle",
    "StreamOutcome",
    "StreamTransport",
    "failure_from_response",
]
