# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability for the scene generation client.

Exports:
    GenerationMetrics: In-process counters recorded by the orchestrator.
    PrometheusGenerationMetrics: Optional Prometheus metrics.
    get_prometheus_generation_metrics: Get or create the Prometheus singleton.
    reset_prometheus_generation_metrics: Reset the Prometheus singleton.
    PROMETHEUS_AVAILABLE: Whether prometheus_client is installed.
"""

from .metrics import (
    PROMETHEUS_AVAILABLE,
    GenerationMetrics,
    PrometheusGenerationMetrics,
    get_prometheus_generation_metrics,
    reset_prometheus_generation_metrics,
)

__all__ = [
    "PROMETHEUS_AVAILABLE",
    "GenerationMetrics",
    "PrometheusGenerationMetrics",
    "get_prometheus_generation_metrics",
    "reset_prometheus_generation_metrics",
]
