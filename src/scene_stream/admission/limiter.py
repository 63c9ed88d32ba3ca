# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Sliding-window admission control.

The RateLimiter keeps the timestamps of recently admitted requests and
refuses new ones once ``max_requests`` fall inside the window. It is an
explicitly owned object: clients that should share an admission budget must
be handed the same instance.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from ..exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window request limiter.

    The prune-check-record sequence runs under a ``threading.Lock``. The
    critical section never awaits, so it is safe to call from concurrent
    asyncio tasks as well as from worker threads.

    Example:
        >>> limiter = RateLimiter(max_requests=3, window_seconds=60.0)
        >>> limiter.admit()
        >>> limiter.remaining()
        2
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the limiter.

        Args:
            max_requests: Maximum admissions within one window
            window_seconds: Window length in seconds
            clock: Monotonic time source, injectable for tests
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def _prune_locked(self, now: float) -> None:
        # Timestamps are appended in order, so expired ones sit at the left
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    def admit(self) -> None:
        """
        Admit one request or refuse it.

        Raises:
            RateLimitExceededError: If the window is full. Nothing is
                recorded in that case.
        """
        with self._lock:
            now = self._clock()
            self._prune_locked(now)

            if len(self._timestamps) >= self.max_requests:
                retry_after = self.window_seconds - (now - self._timestamps[0])
                logger.debug(
                    f"Admission denied: {len(self._timestamps)}/{self.max_requests} "
                    f"requests in window, retry in {retry_after:.1f}s"
                )
                raise RateLimitExceededError(retry_after=max(0.0, retry_after))

            self._timestamps.append(now)

    def remaining(self) -> int:
        """Number of requests that would currently be admitted."""
        with self._lock:
            self._prune_locked(self._clock())
            return self.max_requests - len(self._timestamps)

    def retry_after(self) -> float:
        """Seconds until the next request would be admitted (0.0 if now)."""
        with self._lock:
            now = self._clock()
            self._prune_locked(now)
            if len(self._timestamps) < self.max_requests:
                return 0.0
            return max(0.0, self.window_seconds - (now - self._timestamps[0]))

    def reset(self) -> None:
        """Forget all recorded admissions."""
        with self._lock:
            self._timestamps.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._timestamps)


__all__ = ["RateLimiter"]
