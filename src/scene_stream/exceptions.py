# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the scene generation client.

This module defines the failure taxonomy used throughout the library.
All exceptions inherit from GenerationError, making it easy to catch
every client-related failure with a single except clause.

Pre-flight failures (admission, credentials) are raised to the caller of
``generate()``. Failures that happen once the network operation has started
are never raised: the same exception instances are delivered as values
through ``on_error`` and the generation handle.
"""

from __future__ import annotations

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class GenerationError(Exception):
    """Base exception for all generation errors.

    Every instance doubles as the failure record of a single attempt: it
    carries the human-readable message, the HTTP status (if any) and whether
    the failure may be retried.

    Attributes:
        status_code: HTTP status code returned by the provider, or a
            pseudo-status for local failures (408 for timeouts). None when
            no status applies.
        retry_after: Server-supplied retry hint in seconds, if any.
        retryable: Whether the retry policy may repeat the attempt.

    Example:
        try:
            handle = await orchestrator.generate(prompt, params, callbacks)
        except GenerationError as e:
            logger.error(f"Generation could not start: {e}")
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retry_after = retry_after

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code!r}, retryable={self.retryable!r})"
        )


class ConfigurationError(GenerationError):
    """Raised when configuration values are invalid or incompatible."""

    pass


class UnauthenticatedError(GenerationError):
    """Raised when there is no user session to look a credential up for.

    This is a pre-flight failure: no network call is made.
    """

    pass


class NotConfiguredError(GenerationError):
    """Raised when the user has no API key stored.

    This is a pre-flight failure: no network call is made.
    """

    pass


class RateLimitExceededError(GenerationError):
    """Raised when local admission control denies a request.

    Attributes:
        retry_after: Seconds until the oldest request leaves the admission
            window and a new request would be admitted.

    Example:
        try:
            limiter.admit()
        except RateLimitExceededError as e:
            await asyncio.sleep(e.retry_after or 1.0)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: float | None = None,
    ):
        super().__init__(message, status_code=None, retry_after=retry_after)


class UnauthorizedError(GenerationError):
    """The provider rejected the credential (HTTP 401)."""

    pass


class ForbiddenError(UnauthorizedError):
    """The credential is valid but lacks access to the resource (HTTP 403)."""

    pass


class ProviderRateLimitedError(GenerationError):
    """The provider throttled the request (HTTP 429)."""

    retryable = True


class ProviderServerError(GenerationError):
    """The provider failed with a 5xx status.

    Only 500, 502, 503 and 504 are retryable; other 5xx statuses are final.
    """

    def __init__(
        self,
        message: str = "",
        status_code: int | None = 500,
        retry_after: float | None = None,
    ):
        super().__init__(message, status_code=status_code, retry_after=retry_after)
        self.retryable = status_code in RETRYABLE_STATUS_CODES


class GenerationTimeoutError(GenerationError):
    """A local deadline elapsed.

    A timeout while connecting is retryable; a timeout of the overall
    request deadline is final.
    """

    def __init__(
        self,
        message: str = "Request timed out",
        connect_phase: bool = False,
    ):
        super().__init__(message, status_code=408)
        self.connect_phase = connect_phase
        self.retryable = connect_phase


class MalformedResponseError(GenerationError):
    """The final buffer could not be parsed.

    Recovered internally with the fallback result; never delivered to
    ``on_error``.
    """

    pass


class GenerationCancelledError(GenerationError):
    """The caller cancelled the generation before it finished."""

    pass


class UnknownGenerationError(GenerationError):
    """Any failure that does not fit another category."""

    pass


def error_for_status(
    status_code: int,
    message: str | None = None,
    retry_after: float | None = None,
) -> GenerationError:
    """Build the failure matching an HTTP status code.

    Args:
        status_code: The HTTP status returned by the provider.
        message: Provider message from the error envelope, if any.
        retry_after: Parsed ``Retry-After`` hint in seconds, if any.

    Returns:
        A GenerationError subclass instance. The original provider message is
        preserved; a generic message is used only when none was supplied.
    """
    text = message or f"Provider API error: HTTP {status_code}"
    if status_code == 401:
        return UnauthorizedError(text, status_code=401)
    if status_code == 403:
        return ForbiddenError(text, status_code=403)
    if status_code == 429:
        return ProviderRateLimitedError(
            text, status_code=429, retry_after=retry_after
        )
    if 500 <= status_code < 600:
        return ProviderServerError(
            text, status_code=status_code, retry_after=retry_after
        )
    return UnknownGenerationError(text, status_code=status_code)


__all__ = [
    "RETRYABLE_STATUS_CODES",
    "ConfigurationError",
    "ForbiddenError",
    "GenerationCancelledError",
    "GenerationError",
    "GenerationTimeoutError",
    "MalformedResponseError",
    "NotConfiguredError",
    "ProviderRateLimitedError",
    "ProviderServerError",
    "RateLimitExceededError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "UnknownGenerationError",
    "error_for_status",
]
