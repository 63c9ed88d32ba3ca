# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Scene Stream - Streaming scene generation for interactive fiction.

This library streams chat-completion responses from an OpenAI-compatible
provider and reconstructs a structured scene (a description plus three
distinct player choices) while the text is still arriving.

Key Features:
    - Sliding-window admission control per client instance
    - Bounded retry with backoff before the first token
    - Speculative parsing that only runs once the JSON object is balanced
    - Choice deduplication and a readable fallback for malformed output
    - Exactly one terminal callback per generation

Quick Start:
    >>> from scene_stream import (
    ...     GenerationCallbacks,
    ...     GenerationOrchestrator,
    ...     InMemoryCredentialStore,
    ...     ModelParameters,
    ...     StoryPrompt,
    ... )
    >>>
    >>> store = InMemoryCredentialStore({"user-1": "sk-..."})
    >>> async with GenerationOrchestrator(store, MyPromptBuilder()) as client:
    ...     handle = await client.generate(
    ...         StoryPrompt(context, "Follow the lantern"),
    ...         ModelParameters(),
    ...         GenerationCallbacks(on_token, on_complete, on_error),
    ...         user_id="user-1",
    ...     )
    ...     outcome = await handle.result()

Main Exports:
    - GenerationOrchestrator, GenerationCallbacks, GenerationHandle
    - GeneratorConfig, ModelParameters: Configuration
    - RateLimiter, RetryPolicy, IncrementalParser, StreamTransport: Components
    - GenerationError and subclasses: Failure taxonomy

Note: Prometheus metrics require the 'metrics' extra. Install with:
    pip install scene-stream[metrics]

Version: 1.0.0
"""

__version__ = "1.0.0"

from .admission import RateLimiter
from .config import DEFAULT_BASE_URL, GeneratorConfig
from .credentials import InMemoryCredentialStore
from .exceptions import (
    ConfigurationError,
    ForbiddenError,
    GenerationCancelledError,
    GenerationError,
    GenerationTimeoutError,
    MalformedResponseError,
    NotConfiguredError,
    ProviderRateLimitedError,
    ProviderServerError,
    RateLimitExceededError,
    UnauthenticatedError,
    UnauthorizedError,
    UnknownGenerationError,
    error_for_status,
)
from .observability import (
    GenerationMetrics,
    PrometheusGenerationMetrics,
    get_prometheus_generation_metrics,
)
from .orchestrator import (
    GenerationCallbacks,
    GenerationHandle,
    GenerationOrchestrator,
)
from .parsing import IncrementalParser, normalize_choices
from .protocols import CredentialStoreProtocol, PromptBuilderProtocol
from .retry import RetryPolicy, parse_retry_after
from .streaming import (
    CredentialCheck,
    StreamHandle,
    StreamOutcome,
    StreamSession,
    StreamTransport,
)
from .types import (
    AVAILABLE_MODELS,
    Choice,
    Err,
    GenerationOutcome,
    GenerationResult,
    ModelParameters,
    Ok,
    PromptMessages,
    StoryPrompt,
)

__all__ = [
    "AVAILABLE_MODELS",
    "DEFAULT_BASE_URL",
    # Types
    "Choice",
    "ConfigurationError",
    "CredentialCheck",
    # Protocols
    "CredentialStoreProtocol",
    "Err",
    "ForbiddenError",
    # Orchestration
    "GenerationCallbacks",
    "GenerationCancelledError",
    # Exceptions
    "GenerationError",
    "GenerationHandle",
    # Observability
    "GenerationMetrics",
    "GenerationOrchestrator",
    "GenerationOutcome",
    "GenerationResult",
    "GenerationTimeoutError",
    # Configuration
    "GeneratorConfig",
    "InMemoryCredentialStore",
    # Components
    "IncrementalParser",
    "MalformedResponseError",
    "ModelParameters",
    "NotConfiguredError",
    "Ok",
    "PrometheusGenerationMetrics",
    "PromptBuilderProtocol",
    "PromptMessages",
    "ProviderRateLimitedError",
    "ProviderServerError",
    "RateLimitExceededError",
    "RateLimiter",
    "RetryPolicy",
    "StoryPrompt",
    "StreamHandle",
    "StreamOutcome",
    "StreamSession",
    "StreamTransport",
    "UnauthenticatedError",
    "UnauthorizedError",
    "UnknownGenerationError",
    "error_for_status",
    "get_prometheus_generation_metrics",
    "normalize_choices",
    "parse_retry_after",
]
