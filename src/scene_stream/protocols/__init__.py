# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for collaborators of the generation client.

Available protocols:
- CredentialStoreProtocol: Looks up the API key of a user
- PromptBuilderProtocol: Turns a story context and choice into chat messages
"""

from ..types.request import PromptMessages
from .credentials import CredentialStoreProtocol
from .prompts import PromptBuilderProtocol

__all__ = [
    "CredentialStoreProtocol",
    "PromptBuilderProtocol",
    "PromptMessages",
]
