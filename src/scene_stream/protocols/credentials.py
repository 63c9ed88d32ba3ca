# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for credential lookup."""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable


@runtime_checkable
class CredentialStoreProtocol(Protocol):
    """
    Protocol for the store that holds users' provider API keys.

    Implementations may be synchronous or return an awaitable; the
    orchestrator accepts both.
    """

    def get_api_key(self, user_id: str | None) -> str | Awaitable[str]:
        """
        Return the bearer token of a user.

        Raises:
            UnauthenticatedError: If there is no user session (user_id is None)
            NotConfiguredError: If the user has not stored a key
        """
        ...
