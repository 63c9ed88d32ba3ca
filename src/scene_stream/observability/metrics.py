# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Generation metrics for the scene generation client.

This module provides:
1. GenerationMetrics - Dataclass counters for admissions, attempts and outcomes
2. PrometheusGenerationMetrics - Optional Prometheus metrics for observability

Usage:
    metrics = GenerationMetrics()

    metrics.record_admission()
    metrics.record_attempt()
    metrics.record_completion(fragments=42, fallback=False, duration=3.2)

    stats = metrics.get_stats()
"""

from __future__ import annotations

import logging
import threading
from collections import Counter as TallyCounter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

logger = logging.getLogger(__name__)

# Type declarations for optional prometheus_client imports
if TYPE_CHECKING:
    from prometheus_client import Counter as CounterType, Histogram as HistogramType
else:
    CounterType = object
    HistogramType = object

# Try to import prometheus_client for optional Prometheus metrics
try:
    from prometheus_client import Counter as _Counter, Histogram as _Histogram

    Counter: type[CounterType] | None = _Counter
    Histogram: type[HistogramType] | None = _Histogram
    PROMETHEUS_AVAILABLE = True
except ImportError:
    Counter = None
    Histogram = None
    PROMETHEUS_AVAILABLE = False


@dataclass
class GenerationMetrics:
    """
    Counters describing generation traffic.

    Thread Safety:
        Every update takes a threading.Lock, so one instance may be shared
        by orchestrators running in different threads.

    Example:
        >>> metrics = GenerationMetrics()
        >>> metrics.record_completion(fragments=10, fallback=True)
        >>> metrics.get_fallback_rate()
        1.0
    """

    admissions: int = 0
    rejections: int = 0
    attempts: int = 0
    retries: int = 0
    completions: int = 0
    fallbacks: int = 0
    failures: int = 0
    timeouts: int = 0
    cancellations: int = 0
    fragments: int = 0
    total_duration_seconds: float = 0.0

    _failures_by_type: TallyCounter[str] = field(
        default_factory=TallyCounter, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_admission(self) -> None:
        with self._lock:
            self.admissions += 1

    def record_rejection(self) -> None:
        """Record a request refused by local admission control."""
        with self._lock:
            self.rejections += 1

    def record_attempt(self) -> None:
        with self._lock:
            self.attempts += 1

    def record_retry(self) -> None:
        with self._lock:
            self.retries += 1

    def record_completion(
        self,
        fragments: int,
        fallback: bool,
        duration: float | None = None,
    ) -> None:
        """
        Record a generation that ended with on_complete.

        Args:
            fragments: Fragments forwarded to the caller
            fallback: Whether the fallback choices were used
            duration: Seconds from generate() to completion
        """
        with self._lock:
            self.completions += 1
            self.fragments += fragments
            if fallback:
                self.fallbacks += 1
            if duration is not None:
                self.total_duration_seconds += duration

    def record_failure(self, error_type: str, fragments: int = 0) -> None:
        """
        Record a generation that ended with on_error.

        Args:
            error_type: Failure class name, e.g. "ProviderServerError"
            fragments: Fragments forwarded before the failure
        """
        with self._lock:
            self.failures += 1
            self.fragments += fragments
            self._failures_by_type[error_type] += 1
            if error_type == "GenerationTimeoutError":
                self.timeouts += 1
            elif error_type == "GenerationCancelledError":
                self.cancellations += 1

    def get_fallback_rate(self) -> float:
        """Share of completions that used the fallback choices."""
        return self.fallbacks / self.completions if self.completions > 0 else 0.0

    def get_success_rate(self) -> float:
        """Share of finished generations that completed (1.0 when none finished)."""
        finished = self.completions + self.failures
        return self.completions / finished if finished > 0 else 1.0

    def get_stats(self) -> dict[str, Any]:
        """Return a JSON-serializable snapshot."""
        with self._lock:
            return {
                "admissions": self.admissions,
                "rejections": self.rejections,
                "attempts": self.attempts,
                "retries": self.retries,
                "completions": self.completions,
                "fallbacks": self.fallbacks,
                "failures": self.failures,
                "timeouts": self.timeouts,
                "cancellations": self.cancellations,
                "fragments": self.fragments,
                "total_duration_seconds": self.total_duration_seconds,
                "fallback_rate": self.get_fallback_rate(),
                "success_rate": self.get_success_rate(),
                "failures_by_type": dict(self._failures_by_type),
            }

    def reset(self) -> None:
        """Reset all counters to zero."""
        with self._lock:
            self.admissions = 0
            self.rejections = 0
            self.attempts = 0
            self.retries = 0
            self.completions = 0
            self.fallbacks = 0
            self.failures = 0
            self.timeouts = 0
            self.cancellations = 0
            self.fragments = 0
            self.total_duration_seconds = 0.0
            self._failures_by_type.clear()


class PrometheusGenerationMetrics:
    """
    Optional Prometheus metrics for generation traffic.

    Only instantiated if prometheus_client is available.

    Metrics:
        - scene_stream_admissions_total: Admission decisions by result
        - scene_stream_retries_total: Connect retries by error type
        - scene_stream_completions_total: Completions by fallback flag
        - scene_stream_failures_total: Terminal failures by error type
        - scene_stream_generation_duration_seconds: Histogram of durations
    """

    def __init__(self, registry: Any | None = None) -> None:
        """
        Initialize Prometheus metrics.

        Args:
            registry: Optional CollectorRegistry. If None, uses the default registry.

        Raises:
            ImportError: If prometheus_client is not available.
        """
        if not PROMETHEUS_AVAILABLE or Counter is None or Histogram is None:
            raise ImportError(
                "prometheus_client is not available. "
                "Install with: pip install prometheus-client"
            )

        self.admissions = Counter(
            "scene_stream_admissions_total",
            "Admission decisions of the local rate limiter",
            ["result"],  # Values: admitted, rejected
            registry=registry,
        )
        self.retries = Counter(
            "scene_stream_retries_total",
            "Connect-phase retries",
            ["error_type"],
            registry=registry,
        )
        self.completions = Counter(
            "scene_stream_completions_total",
            "Generations that completed",
            ["fallback"],
            registry=registry,
        )
        self.failures = Counter(
            "scene_stream_failures_total",
            "Generations that ended with an error",
            ["error_type"],
            registry=registry,
        )
        self.duration_seconds = Histogram(
            "scene_stream_generation_duration_seconds",
            "Duration of generations from admission to terminal callback",
            buckets=[0.5, 1, 2, 5, 10, 20, 30, 60, 120],
            registry=registry,
        )

        logger.info("Prometheus generation metrics initialized")

    def observe_admission(self, admitted: bool) -> None:
        self.admissions.labels(result="admitted" if admitted else "rejected").inc()

    def observe_retry(self, error_type: str) -> None:
        self.retries.labels(error_type=error_type).inc()

    def observe_completion(self, duration_seconds: float, fallback: bool) -> None:
        self.completions.labels(fallback=str(fallback).lower()).inc()
        self.duration_seconds.observe(duration_seconds)

    def observe_failure(self, error_type: str, duration_seconds: float) -> None:
        self.failures.labels(error_type=error_type).inc()
        self.duration_seconds.observe(duration_seconds)


# Module-level singleton for Prometheus metrics (optional)
_prometheus_generation_metrics: PrometheusGenerationMetrics | None = None
_prometheus_lock = threading.Lock()


def get_prometheus_generation_metrics() -> PrometheusGenerationMetrics | None:
    """
    Get or create the Prometheus metrics singleton.

    Uses double-checked locking so concurrent callers cannot trigger a
    duplicate registration in the default registry.

    Returns:
        PrometheusGenerationMetrics if prometheus_client is available,
        None otherwise.
    """
    global _prometheus_generation_metrics

    if not PROMETHEUS_AVAILABLE:
        return None

    if _prometheus_generation_metrics is None:
        with _prometheus_lock:
            if _prometheus_generation_metrics is None:
                try:
                    _prometheus_generation_metrics = PrometheusGenerationMetrics()
                except Exception as e:
                    logger.warning(
                        f"Failed to initialize Prometheus generation metrics: {e}"
                    )
                    return None

    return _prometheus_generation_metrics


def reset_prometheus_generation_metrics() -> None:
    """Reset the Prometheus metrics singleton (mainly for testing)."""
    global _prometheus_generation_metrics
    _prometheus_generation_metrics = None


__all__ = [
    "PROMETHEUS_AVAILABLE",
    "GenerationMetrics",
    "PrometheusGenerationMetrics",
    "get_prometheus_generation_metrics",
    "reset_prometheus_generation_metrics",
]
