# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Configuration for the scene generation client.

This module provides the configuration dataclass for admission control,
retry, transport deadlines and parsing behaviour.
"""

from dataclasses import dataclass

DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass
class GeneratorConfig:
    """
    Configuration for the generation orchestrator.

    This is a generic configuration that works with any OpenAI-compatible
    chat-completions provider.
    """

    # === Provider ===

    base_url: str = DEFAULT_BASE_URL
    """Base URL of the provider API (without trailing slash)."""

    # === Transport Deadlines ===

    request_timeout: float = 30.0
    """Overall deadline for one stream, from connect to end-of-stream, in seconds."""

    connect_timeout: float = 10.0
    """Deadline for establishing the connection, in seconds."""

    # === Admission Control ===

    max_requests: int = 3
    """Maximum number of requests admitted within the window."""

    window_seconds: float = 60.0
    """Length of the sliding admission window in seconds."""

    # === Retry ===

    max_retries: int = 3
    """Maximum number of retries after the first connect attempt."""

    base_delay: float = 1.0
    """Backoff delay before the first retry, in seconds."""

    max_backoff: float = 60.0
    """Upper bound for computed backoff delays, in seconds."""

    # === Parsing ===

    recover_labelled_choices: bool = False
    """Recover 'Choice N:' / 'Option N:' lists before using fallback choices."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.base_url = self.base_url.rstrip("/")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_backoff < self.base_delay:
            raise ValueError("max_backoff must be at least base_delay")

    @property
    def chat_completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"


__all__ = ["DEFAULT_BASE_URL", "GeneratorConfig"]
