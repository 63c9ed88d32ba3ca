# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for prompt construction."""

from typing import Any, Protocol, runtime_checkable

from ..types.request import PromptMessages


@runtime_checkable
class PromptBuilderProtocol(Protocol):
    """
    Protocol for building the chat messages of a generation request.

    Prompt templates live with the application; the client only needs the
    resulting system and user messages.
    """

    def build(self, context: Any, choice: str) -> PromptMessages:
        """
        Build messages for continuing the story after ``choice``.

        Args:
            context: Application-defined story context
            choice: The choice the player made

        Returns:
            PromptMessages with the system and user message
        """
        ...
