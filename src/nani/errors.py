"""Exception types shared across the workspace store, codec and orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nani.codec import Response


class NaniError(Exception):
    """Base class for all nani errors."""


# ── Response decoding ─────────────────────────────────────────


class ResponseError(NaniError):
    """A reply could not be turned into a Response.

    ``fallback`` always holds a displayable record whose content is the
    original raw text, so the caller never loses the reply.
    """

    def __init__(self, message: str, fallback: Response) -> None:
        super().__init__(message)
        self.fallback = fallback


class EmptyResponseError(ResponseError):
    """The reply was empty or whitespace-only."""


class ResponseParseError(ResponseError):
    """The reply was not a JSON object with three string fields."""


class ResponseValidationError(ResponseError):
    """A required field of the reply was empty or missing."""

    def __init__(self, field: str, fallback: Response) -> None:
        super().__init__(f"{field} field is empty or missing", fallback)
        self.field = field


# ── Workspace ─────────────────────────────────────────────────


class WorkspaceError(NaniError):
    """Base class for workspace store failures."""


class WorkspaceIOError(WorkspaceError):
    """A filesystem operation on the workspace failed."""


class NotFoundError(WorkspaceError):
    """A referenced role, preference, archived session or source is absent."""


class NoActiveSessionError(WorkspaceError):
    """The operation needs an active session but the slot is empty."""


# ── Orchestration ─────────────────────────────────────────────


class ProviderError(NaniError):
    """The AI provider failed to produce a reply."""


class BusyError(NaniError):
    """A request is already in flight."""
