# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry policy for the connect phase of a generation request.

Classification decides whether a failure may be retried; delay computation
honours a server-supplied retry hint and otherwise backs off exponentially.
The policy only ever applies before the first fragment reached the caller:
once tokens have been forwarded, repeating the request would duplicate or
lose them.
"""

from __future__ import annotations

import logging
import re
import time
from email.utils import parsedate_to_datetime

from .exceptions import (
    RETRYABLE_STATUS_CODES,
    GenerationError,
    GenerationTimeoutError,
)

logger = logging.getLogger(__name__)

_DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a retry hint header into seconds.

    Handles delta-seconds (``"2"``, ``"1.5"``), HTTP-dates
    (``"Wed, 21 Oct 2015 07:28:00 GMT"``) and duration strings as sent in
    ``x-ratelimit-reset-*`` headers (``"500ms"``, ``"1m30s"``).

    Returns:
        Non-negative seconds, or None if the value is missing or unparseable.
    """
    if not value:
        return None
    value = value.strip()

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    matches = _DURATION_PATTERN.findall(value)
    if matches and "".join(a + u for a, u in matches) == value.replace(" ", ""):
        return sum(float(amount) * _UNIT_SECONDS[unit] for amount, unit in matches)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        logger.debug(f"Unparseable retry hint: {value!r}")
        return None
    return max(0.0, retry_at.timestamp() - time.time())


class RetryPolicy:
    """
    Failure classification and backoff computation.

    Example:
        >>> policy = RetryPolicy(max_retries=3, base_delay=1.0)
        >>> policy.delay_for(1), policy.delay_for(2), policy.delay_for(3)
        (1.0, 2.0, 4.0)
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_backoff: float = 60.0,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_backoff = max(max_backoff, base_delay)

    def classify(self, failure: BaseException) -> bool:
        """
        Decide whether a failure is retryable.

        Statuses 429, 500, 502, 503 and 504 and connect timeouts are
        retryable. Authorization failures, client errors, overall deadline
        timeouts and anything without a status are not.
        """
        if isinstance(failure, GenerationTimeoutError):
            return failure.connect_phase
        if isinstance(failure, GenerationError):
            return failure.status_code in RETRYABLE_STATUS_CODES
        return False

    def delay_for(self, attempt: int, failure: BaseException | None = None) -> float:
        """
        Seconds to wait before retry number ``attempt`` (starting at 1).

        A ``retry_after`` hint on the failure is used verbatim; otherwise
        ``base_delay * 2 ** (attempt - 1)``, capped at ``max_backoff``.
        """
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")

        retry_after = getattr(failure, "retry_after", None)
        if retry_after is not None and retry_after >= 0:
            return float(retry_after)

        return float(min(self.base_delay * (2 ** (attempt - 1)), self.max_backoff))

    def should_retry(
        self,
        failure: BaseException,
        attempt: int,
        fragments_delivered: int = 0,
    ) -> bool:
        """
        Combine classification, the retry budget and the pre-first-token rule.

        Args:
            failure: The failure of the attempt that just ended
            attempt: Number of the retry that would follow (starting at 1)
            fragments_delivered: Fragments already forwarded to the caller
        """
        if fragments_delivered > 0:
            return False
        if attempt > self.max_retries:
            return False
        return self.classify(failure)


__all__ = ["RetryPolicy", "parse_retry_after"]
