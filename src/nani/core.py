"""Nani orchestrator — one request in flight between the user and the provider.

Responsibilities:
1. Busy gate — a second submission while one is in flight is rejected
2. Session management — ensure an active session exists
3. Prompt assembly — system prompt, role persona, preferences, sources, history
4. Provider call — bounded by a timeout; failures become error results
5. Response decoding — structured record or raw-text fallback
6. Persistence — append the exchange to the active session
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable

from nani.codec import (
    SCHEMA_HINT,
    SYSTEM_INSTRUCTIONS,
    Response,
    ResponseError,
    encode_response,
    parse_or_fallback,
    parse_response,
)
from nani.config import NaniConfig
from nani.errors import BusyError, ProviderError

if TYPE_CHECKING:
    from nani.providers.base import Provider
    from nani.workspace import Workspace
    from nani.workspace.models import Session

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class Exchange:
    """Outcome of one request. ``error`` is set instead of raising."""

    message: str
    raw: str = ""
    response: Response | None = None
    error: Exception | None = None
    stored: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class Nani:
    """Core orchestrator — routes prompts between the workspace and a provider."""

    def __init__(
        self,
        workspace: Workspace,
        provider: Provider,
        config: NaniConfig | None = None,
    ) -> None:
        self.workspace = workspace
        self.provider = provider
        self.config = config or NaniConfig()
        self.timeout = float(self.config.provider.timeout or DEFAULT_TIMEOUT)
        self._busy = False
        self._inflight: asyncio.Future | None = None
        self._cancel_requested = False
        self._primed_session: str | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    # ── Provider calls (busy gate + timeout) ─────────────────

    async def _call(self, request: Awaitable[str]) -> str:
        if self._busy:
            if asyncio.iscoroutine(request):
                request.close()
            raise BusyError("a request is already in flight")
        self._busy = True
        self._cancel_requested = False
        self._inflight = asyncio.ensure_future(request)
        try:
            return await asyncio.wait_for(self._inflight, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"request timed out after {self.timeout:g}s") from e
        except asyncio.CancelledError as e:
            # Only a cancel() of the request itself becomes a result
            if not self._cancel_requested:
                raise
            raise ProviderError("request cancelled") from e
        finally:
            self._busy = False
            self._inflight = None

    def cancel(self) -> bool:
        """Cancel the request in flight. Returns False when idle."""
        if self._inflight is None or self._inflight.done():
            return False
        self._cancel_requested = True
        self._inflight.cancel()
        return True

    async def establish(self) -> str:
        """Send the response-format instructions. Returns the provider's reply."""
        reply = await self._call(
            self.provider.establish_session(SYSTEM_INSTRUCTIONS, SCHEMA_HINT)
        )
        self._primed_session = None
        return reply

    async def ask(self, message: str) -> Exchange:
        """Send one user message and record the exchange in the active session.

        Raises BusyError if a request is already in flight; every other
        failure is reported through ``Exchange.error``.
        """
        if self._busy:
            raise BusyError("a request is already in flight")

        session = self.workspace.sessions.ensure_active(
            self.config.session.label, self.config.session.role
        )
        prompt = self.build_prompt(session, message, with_history=self._primed_session != session.id)

        exchange = Exchange(message=message)
        try:
            exchange.raw = await self._call(self.provider.send_prompt(prompt))
        except ProviderError as e:
            logger.warning("Provider request failed: %s", e)
            exchange.error = e
            return exchange
        self._primed_session = session.id

        exchange.response, exchange.error = parse_or_fallback(exchange.raw)
        if exchange.error is None:
            self.workspace.sessions.add_interaction(message, encode_response(exchange.response))
            exchange.stored = True
        return exchange

    # ── Prompt assembly ───────────────────────────────────────

    def build_prompt(self, session: Session, message: str, with_history: bool = True) -> str:
        """Assemble the full prompt for one request."""
        parts: list[str] = []

        system_prompt = self.workspace.context.settings.system_prompt
        if system_prompt:
            parts.append(system_prompt)

        role = session.role
        if role.persona:
            parts.append(f"## Role: {role.label or role.name}\n{role.persona}")

        prefs = self.workspace.preferences.load_all()
        if prefs:
            lines = "\n".join(f"- {p.content}" for p in prefs)
            parts.append(f"## Contextual Information & Constraints\n{lines}")

        sources = self._render_sources(session.sources)
        if sources:
            parts.append(f"## Source Files\n{sources}")

        if with_history and session.chat:
            parts.append(f"## Past Interactions History\n{self._render_history(session)}")

        parts.append(f"## Current User Request\n{message}")
        return "\n\n".join(parts)

    def _render_sources(self, sources: list[str]) -> str:
        blocks = []
        for source in sources:
            path = Path(source)
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning("Skipping unreadable source %s: %s", source, e)
                continue
            blocks.append(
                f"— Begin file: [{path.name}] —\n{text.rstrip()}\n— End file: [{path.name}] —"
            )
        return "\n\n".join(blocks)

    def _render_history(self, session: Session) -> str:
        entries = []
        for chat in session.chat:
            try:
                reply = parse_response(chat.response.content).summary
            except ResponseError:
                reply = chat.response.content
            entries.append(f"Request: {chat.message.content}\nResponse: {reply}")
        return "\n\n".join(entries)
