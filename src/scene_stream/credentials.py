# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
In-memory credential store.

Suitable for tests, scripts and single-process tools. Applications with real
user accounts provide their own CredentialStoreProtocol implementation.
"""

from __future__ import annotations

import logging
import threading

from .exceptions import NotConfiguredError, UnauthenticatedError

logger = logging.getLogger(__name__)


class InMemoryCredentialStore:
    """Dict-backed store mapping user ids to API keys."""

    def __init__(self, keys: dict[str, str] | None = None) -> None:
        self._keys: dict[str, str] = dict(keys or {})
        self._lock = threading.Lock()

    def get_api_key(self, user_id: str | None) -> str:
        if user_id is None:
            raise UnauthenticatedError("User not authenticated")
        with self._lock:
            key = self._keys.get(user_id)
        if not key:
            raise NotConfiguredError(
                "API key not set. Please add your API key in Profile Settings."
            )
        return key

    def set_api_key(self, user_id: str, api_key: str) -> None:
        with self._lock:
            self._keys[user_id] = api_key
        logger.debug(f"Stored API key for user {user_id}")

    def remove_api_key(self, user_id: str) -> None:
        with self._lock:
            self._keys.pop(user_id, None)


__all__ = ["InMemoryCredentialStore"]
