# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Admission control for outgoing generation requests."""

from .limiter import RateLimiter

__all__ = ["RateLimiter"]
