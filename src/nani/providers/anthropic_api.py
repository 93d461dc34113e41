"""Anthropic API provider — plain multi-turn conversation, no tools."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from nani.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass
class AnthropicProvider:
    """Direct Anthropic API via the `anthropic` SDK.

    The conversation is kept client-side and resent on every call; the
    first turn carries the response-format instructions.
    """

    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096
    timeout: int = 30
    _messages: list[dict] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            import anthropic

            self._client = anthropic.Anthropic(timeout=self.timeout)
        except ImportError:
            raise ImportError(
                "anthropic package required. Install with: pip install 'nani[api]'"
            )

    @property
    def name(self) -> str:
        return "anthropic_api"

    async def establish_session(self, system_instructions: str, schema_hint: str) -> str:
        self._messages.clear()
        return await self._turn(f"{system_instructions}\n\nSchema:\n{schema_hint}")

    async def send_prompt(self, text: str) -> str:
        return await self._turn(text)

    async def _turn(self, text: str) -> str:
        self._messages.append({"role": "user", "content": text})
        try:
            response = await asyncio.to_thread(
                self._client.messages.create,
                model=self.model,
                max_tokens=self.max_tokens,
                messages=list(self._messages),
            )
        except asyncio.CancelledError:
            self._messages.pop()
            raise
        except Exception as e:
            self._messages.pop()
            logger.error("Anthropic API error: %s", e)
            raise ProviderError(f"failed to get response from Anthropic: {e}") from e

        if not response.content:
            self._messages.pop()
            raise ProviderError("no response content received from Anthropic model")

        reply = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )
        self._messages.append({"role": "assistant", "content": reply})
        return reply
