# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Generation orchestrator.

GenerationOrchestrator ties admission control, credential lookup, prompt
construction, the streaming transport, incremental parsing and the retry
policy together behind a single ``generate()`` entry point.

Usage:
    async with GenerationOrchestrator(store, prompts) as orchestrator:
        handle = await orchestrator.generate(
            StoryPrompt(context, "Open the door"),
            ModelParameters(),
            GenerationCallbacks(on_token=print, on_complete=show, on_error=warn),
            user_id="user-1",
        )
        outcome = await handle.result()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from types import TracebackType
from typing import Any

import httpx
from typing_extensions import Self

from .admission import RateLimiter
from .config import GeneratorConfig
from .exceptions import (
    GenerationCancelledError,
    GenerationError,
    RateLimitExceededError,
    UnknownGenerationError,
)
from .observability.metrics import GenerationMetrics, PrometheusGenerationMetrics
from .parsing.parser import IncrementalParser
from .protocols.credentials import CredentialStoreProtocol
from .protocols.prompts import PromptBuilderProtocol
from .retry import RetryPolicy
from .streaming.session import StreamSession
from .streaming.transport import StreamHandle, StreamOutcome, StreamTransport
from .streaming.validation import CredentialCheck, check_credential
from .types.params import ModelParameters
from .types.request import ChatCompletionRequest, StoryPrompt, StreamRequest
from .types.result import Err, GenerationOutcome, Ok
from .types.scene import Choice, GenerationResult

logger = logging.getLogger(__name__)


@dataclass
class GenerationCallbacks:
    """
    Callbacks of one generation.

    ``on_token`` receives every fragment verbatim, in arrival order. Exactly
    one of ``on_complete`` and ``on_error`` fires afterwards, and no
    ``on_token`` follows it.
    """

    on_token: Callable[[str], None]
    on_complete: Callable[[list[Choice]], None]
    on_error: Callable[[GenerationError], None]


class GenerationHandle:
    """Handle returned by ``generate()`` for awaiting or cancelling a generation."""

    def __init__(self, run: _GenerationRun) -> None:
        self._run = run

    @property
    def request_id(self) -> str:
        return self._run.request_id

    @property
    def fragments(self) -> int:
        """Fragments forwarded to ``on_token`` so far."""
        return self._run.fragments

    def done(self) -> bool:
        """True once a terminal callback fired."""
        return self._run.finished

    async def result(self) -> GenerationOutcome:
        """
        Wait for the generation to finish.

        Returns:
            ``Ok(GenerationResult)`` after ``on_complete``, or
            ``Err(GenerationError)`` after ``on_error``.
        """
        return await asyncio.shield(self._run.outcome)

    def cancel(self) -> bool:
        """
        Cancel the generation.

        ``on_error`` receives a GenerationCancelledError unless the
        generation already finished. Idempotent.

        Returns:
            True if this call cancelled the generation.
        """
        return self._run.cancel()

    def __repr__(self) -> str:
        return f"GenerationHandle(request_id={self.request_id!r}, done={self.done()})"


class _GenerationRun:
    """
    State of one ``generate()`` call across its attempts.

    The run is the terminal latch: ``_complete`` and ``_fail`` only act on
    the first call, and fragments are dropped once it is set.
    """

    def __init__(
        self,
        request_id: str,
        request: StreamRequest,
        callbacks: GenerationCallbacks,
        *,
        transport: StreamTransport,
        retry_policy: RetryPolicy,
        config: GeneratorConfig,
        metrics: GenerationMetrics,
        prometheus_metrics: PrometheusGenerationMetrics | None,
        sleep: Callable[[float], Awaitable[Any]],
    ) -> None:
        self.request_id = request_id
        self.request = request
        self.callbacks = callbacks
        self._transport = transport
        self._retry_policy = retry_policy
        self._config = config
        self._metrics = metrics
        self._prometheus_metrics = prometheus_metrics
        self._sleep = sleep

        self.started_at = time.monotonic()
        self.fragments = 0
        self.finished = False
        self.outcome: asyncio.Future[GenerationOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self.task: asyncio.Task[None] | None = None
        self._stream: StreamHandle | None = None

    async def execute(self) -> None:
        """Run attempts until one completes or a failure is final."""
        attempt = 0
        try:
            while not self.finished:
                attempt += 1
                session = StreamSession(
                    request_id=self.request_id,
                    attempt=attempt,
                    parser=IncrementalParser(
                        recover_labelled_choices=self._config.recover_labelled_choices
                    ),
                )
                self._metrics.record_attempt()
                logger.debug(f"[{self.request_id}] Attempt {attempt} starting")

                self._stream = self._transport.open(
                    self.request,
                    partial(self._on_fragment, session),
                    session.mark_ended,
                    session.mark_failed,
                    deadline=self._config.request_timeout,
                )
                outcome = await self._stream.wait()
                if self.finished:
                    return

                if outcome is StreamOutcome.COMPLETED:
                    self._complete(session.complete())
                    return

                failure = session.failure or GenerationCancelledError(
                    "Stream closed without a result"
                )
                if not self._retry_policy.should_retry(
                    failure, attempt, self.fragments
                ):
                    self._fail(failure)
                    return

                delay = self._retry_policy.delay_for(attempt, failure)
                logger.warning(
                    f"[{self.request_id}] Attempt {attempt} failed with "
                    f"{type(failure).__name__} ({failure.message}), "
                    f"retrying in {delay:.2f}s"
                )
                self._metrics.record_retry()
                if self._prometheus_metrics is not None:
                    self._prometheus_metrics.observe_retry(type(failure).__name__)
                await self._sleep(delay)

        except asyncio.CancelledError:
            if not self.finished:
                self._fail(GenerationCancelledError("Generation cancelled"))
            raise
        except Exception as e:
            logger.error(
                f"[{self.request_id}] Unexpected generation error: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            self._fail(UnknownGenerationError(str(e) or "An unknown error occurred"))

    def cancel(self) -> bool:
        if self.finished:
            return False
        self._fail(GenerationCancelledError("Generation cancelled"))
        if self._stream is not None:
            self._transport.cancel(self._stream)
        if self.task is not None and not self.task.done():
            self.task.cancel()
        return True

    def _on_fragment(self, session: StreamSession, fragment: str) -> None:
        if self.finished:
            return
        self.fragments += 1
        if session.record_fragment(fragment):
            logger.debug(
                f"[{self.request_id}] Structured payload complete after "
                f"{session.fragment_count} fragments"
            )
        self._invoke("on_token", self.callbacks.on_token, fragment)

    def _complete(self, result: GenerationResult) -> None:
        if self.finished:
            return
        self.finished = True
        duration = time.monotonic() - self.started_at

        self._metrics.record_completion(self.fragments, result.fallback, duration)
        if self._prometheus_metrics is not None:
            self._prometheus_metrics.observe_completion(duration, result.fallback)
        logger.info(
            f"[{self.request_id}] Generation completed in {duration:.2f}s "
            f"({self.fragments} fragments, {len(result.choices)} choices"
            f"{', fallback' if result.fallback else ''})"
        )

        self.outcome.set_result(Ok(result))
        self._invoke("on_complete", self.callbacks.on_complete, result.choices)

    def _fail(self, failure: GenerationError) -> None:
        if self.finished:
            return
        self.finished = True
        duration = time.monotonic() - self.started_at
        error_type = type(failure).__name__

        self._metrics.record_failure(error_type, self.fragments)
        if self._prometheus_metrics is not None:
            self._prometheus_metrics.observe_failure(error_type, duration)
        if isinstance(failure, GenerationCancelledError):
            logger.info(f"[{self.request_id}] Generation cancelled")
        else:
            logger.error(
                f"[{self.request_id}] Generation failed after {duration:.2f}s: "
                f"{error_type}: {failure.message}"
            )

        self.outcome.set_result(Err(failure))
        self._invoke("on_error", self.callbacks.on_error, failure)

    def _invoke(self, name: str, callback: Callable[[Any], None], arg: Any) -> None:
        try:
            callback(arg)
        except Exception as e:
            logger.error(
                f"[{self.request_id}] {name} callback raised {type(e).__name__}: {e}",
                exc_info=True,
            )


class GenerationOrchestrator:
    """
    Entry point for streaming scene generation.

    Concurrent ``generate()`` calls share only the rate limiter; every call
    owns its session state.

    Args:
        credential_store: Looks up the bearer token of a user
        prompt_builder: Builds the system and user messages
        config: Transport, admission and retry settings
        rate_limiter: Admission window; created from ``config`` if omitted
        retry_policy: Retry policy; created from ``config`` if omitted
        http_client: Shared httpx client; created and owned if omitted
        transport: Stream transport; created over ``http_client`` if omitted
        metrics: Counters to record into; a new instance if omitted
        prometheus_metrics: Optional Prometheus metrics
        sleep: Coroutine used to wait between retries
    """

    def __init__(
        self,
        credential_store: CredentialStoreProtocol,
        prompt_builder: PromptBuilderProtocol,
        config: GeneratorConfig | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: StreamTransport | None = None,
        metrics: GenerationMetrics | None = None,
        prometheus_metrics: PrometheusGenerationMetrics | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.credential_store = credential_store
        self.prompt_builder = prompt_builder

        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.config.max_requests,
            window_seconds=self.config.window_seconds,
        )
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay=self.config.base_delay,
            max_backoff=self.config.max_backoff,
        )

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()
        self.transport = transport or StreamTransport(
            self._client, connect_timeout=self.config.connect_timeout
        )

        self.metrics = metrics if metrics is not None else GenerationMetrics()
        self.prometheus_metrics = prometheus_metrics
        self._sleep = sleep
        self._active: set[_GenerationRun] = set()

    async def generate(
        self,
        prompt: StoryPrompt,
        config: ModelParameters,
        callbacks: GenerationCallbacks,
        *,
        user_id: str | None = None,
    ) -> GenerationHandle:
        """
        Start a generation and return once it is scheduled.

        Args:
            prompt: Story context and the player's choice
            config: Model parameters of this request
            callbacks: Token and terminal callbacks
            user_id: User whose credential is used

        Returns:
            A GenerationHandle for awaiting or cancelling the generation.

        Raises:
            RateLimitExceededError: If admission control denies the request
            UnauthenticatedError: If there is no user session
            NotConfiguredError: If the user has no stored API key
        """
        try:
            self.rate_limiter.admit()
        except RateLimitExceededError as e:
            self.metrics.record_rejection()
            if self.prometheus_metrics is not None:
                self.prometheus_metrics.observe_admission(False)
            logger.warning(
                f"Generation rejected by admission control "
                f"(retry in {e.retry_after or 0.0:.1f}s)"
            )
            raise
        self.metrics.record_admission()
        if self.prometheus_metrics is not None:
            self.prometheus_metrics.observe_admission(True)

        api_key = await self._get_api_key(user_id)
        messages = self.prompt_builder.build(prompt.context, prompt.choice)
        request = self.build_request(
            ChatCompletionRequest.build(messages, config), api_key
        )

        run = _GenerationRun(
            uuid.uuid4().hex[:12],
            request,
            callbacks,
            transport=self.transport,
            retry_policy=self.retry_policy,
            config=self.config,
            metrics=self.metrics,
            prometheus_metrics=self.prometheus_metrics,
            sleep=self._sleep,
        )
        logger.info(f"[{run.request_id}] Generation started with model {config.model}")

        self._active.add(run)
        run.task = asyncio.get_running_loop().create_task(run.execute())
        run.task.add_done_callback(lambda _t: self._active.discard(run))
        return GenerationHandle(run)

    def build_request(
        self, body: ChatCompletionRequest, api_key: str
    ) -> StreamRequest:
        """Build the streaming request for a chat-completion body."""
        return StreamRequest(
            url=self.config.chat_completions_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
                "Accept": "text/event-stream",
            },
            payload=body.model_dump(),
        )

    async def validate_credential(self, api_key: str) -> CredentialCheck:
        """Check an API key against the provider's models endpoint."""
        return await check_credential(
            self._client,
            self.config.models_url,
            api_key,
            timeout=self.config.connect_timeout,
        )

    @property
    def active_generations(self) -> int:
        return len(self._active)

    async def _get_api_key(self, user_id: str | None) -> str:
        key = self.credential_store.get_api_key(user_id)
        if inspect.isawaitable(key):
            key = await key
        return key

    async def aclose(self) -> None:
        """Cancel running generations and close an owned HTTP client."""
        for run in list(self._active):
            run.cancel()
        if self._active:
            await asyncio.gather(
                *(run.task for run in self._active if run.task is not None),
                return_exceptions=True,
            )
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = [
    "GenerationCallbacks",
    "GenerationHandle",
    "GenerationOrchestrator",
]
