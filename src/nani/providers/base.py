"""Provider capability — the only way nani talks to an AI model."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Provider(Protocol):
    """Two-operation capability every provider adapter satisfies.

    Both operations return the model's raw reply text and raise
    ``nani.errors.ProviderError`` on failure. Parsing is not their job.
    """

    async def establish_session(self, system_instructions: str, schema_hint: str) -> str:
        """Open a conversation with the response-format instructions."""
        ...

    async def send_prompt(self, text: str) -> str:
        """Send one prompt within the established conversation."""
        ...
