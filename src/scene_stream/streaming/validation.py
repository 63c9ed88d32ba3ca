# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Credential validation against the provider's model-listing endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .transport import failure_from_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialCheck:
    """Outcome of a credential validation."""

    valid: bool
    error: str | None = None
    status_code: int | None = None


async def check_credential(
    client: httpx.AsyncClient,
    models_url: str,
    api_key: str,
    timeout: float = 10.0,
) -> CredentialCheck:
    """
    Validate an API key with a lightweight ``GET /models`` request.

    Never raises for provider or network failures; they are reported in the
    returned CredentialCheck.

    Args:
        client: HTTP client to send the request with
        models_url: Absolute URL of the model-listing endpoint
        api_key: Bearer token to validate
        timeout: Request timeout in seconds
    """
    try:
        response = await client.get(
            models_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        logger.warning(f"Credential validation request failed: {type(e).__name__}: {e}")
        return CredentialCheck(valid=False, error=str(e) or "Failed to validate API key")

    if response.is_success:
        return CredentialCheck(valid=True, status_code=response.status_code)

    failure = failure_from_response(response)
    logger.info(f"Credential rejected with HTTP {response.status_code}")
    return CredentialCheck(
        valid=False, error=failure.message, status_code=response.status_code
    )


__all__ = ["CredentialCheck", "check_credential"]
