"""IndexManager — the persisted Context and its artifact indexes.

The indexes hold summaries only. They are rebuilt by scanning disk (at
load time and on request) and updated incrementally by every mutation.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from nani.errors import WorkspaceIOError
from nani.workspace.models import (
    Context,
    PreferenceSummary,
    Project,
    RoleSummary,
    SessionSummary,
    Settings,
    parse_time,
    snippet,
)
from nani.workspace.store import ArtifactStore, is_valid_key

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a general-purpose AI assistant. Provide concise and helpful responses."
)

T = TypeVar("T")

# Failures that mark a single artifact as unreadable during a rebuild
_DECODE_ERRORS = (OSError, ValueError, KeyError, TypeError, AttributeError)


def _key(data: dict, field: str) -> str:
    value = data[field]
    if not is_valid_key(value):
        raise ValueError(f"invalid {field}: {value!r}")
    return value


def _text(data: dict, field: str) -> str:
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{field} must be a string, got {type(value).__name__}")
    return value


def session_summary_from(data: dict) -> SessionSummary:
    """Summary of an archived session record without decoding its chat."""
    meta = data.get("metadata") or {}
    if not isinstance(meta, dict):
        raise TypeError(f"metadata must be an object, got {type(meta).__name__}")
    return SessionSummary(
        id=_key(data, "id"),
        label=_text(data, "label"),
        role_name=_text(data, "role"),
        created_at=parse_time(_text(meta, "createdAt")),
        last_updated=parse_time(_text(meta, "lastUpdated")),
    )


def role_summary_from(data: dict) -> RoleSummary:
    return RoleSummary(
        name=_key(data, "name"),
        label=_text(data, "label"),
        description=_text(data, "description"),
    )


def preference_summary_from(data: dict) -> PreferenceSummary:
    return PreferenceSummary(
        id=_key(data, "id"),
        timestamp=parse_time(_text(data, "timestamp")),
        content_snippet=snippet(_text(data, "content")),
    )


class IndexManager:
    """Holds the in-memory Context and mirrors it to ``context.json``."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store
        self.context: Context | None = None

    # ── Context lifecycle ─────────────────────────────────────

    def exists(self) -> bool:
        return self.store.context_path.exists()

    def create(self, project: Project | None = None) -> Context:
        """Build and persist a fresh Context with empty indexes."""
        self.context = Context(
            workspace=str(uuid.uuid4()),
            settings=Settings(system_prompt=DEFAULT_SYSTEM_PROMPT),
            project=project or Project(),
        )
        self.save()
        return self.context

    def load(self) -> Context:
        """Load ``context.json``, filling defaults missing from older files."""
        path = self.store.context_path
        try:
            data = self.store.read_json(path)
        except (OSError, ValueError) as e:
            raise WorkspaceIOError(f"failed to load context {path}: {e}") from e
        if not isinstance(data, dict):
            raise WorkspaceIOError(f"failed to load context {path}: not a JSON object")
        try:
            self.context = Context.from_dict(data)
        except _DECODE_ERRORS as e:
            # Indexes are derived data; drop them and let rebuild() repopulate
            logger.warning("Discarding unreadable indexes in %s: %s", path, e)
            try:
                self.context = Context.from_dict({**data, "indexes": None})
            except _DECODE_ERRORS as e2:
                raise WorkspaceIOError(f"failed to parse context {path}: {e2}") from e2
        if not self.context.settings.system_prompt:
            self.context.settings.system_prompt = DEFAULT_SYSTEM_PROMPT
            self.save()
        return self.context

    def save(self) -> None:
        self.store.write_json(self.store.context_path, self._require().to_dict())

    def _require(self) -> Context:
        if self.context is None:
            raise RuntimeError("Workspace context not initialized. Call Workspace.init() first.")
        return self.context

    # ── Rebuild ───────────────────────────────────────────────

    def rebuild(self) -> None:
        """Rescan sessions/, roles/ and preferences/, then persist Context.

        A file that cannot be read or decoded is logged and skipped.
        """
        indexes = self._require().indexes
        indexes.clear()

        for summary in self._scan("sessions", "archived session", session_summary_from):
            indexes.sessions[summary.id] = summary
        for summary in self._scan("roles", "role", role_summary_from):
            indexes.roles[summary.name] = summary
        for summary in self._scan("preferences", "preference", preference_summary_from):
            indexes.preferences[summary.id] = summary

        self.save()
        logger.debug(
            "Rebuilt indexes: %d sessions, %d roles, %d preferences",
            len(indexes.sessions),
            len(indexes.roles),
            len(indexes.preferences),
        )

    def _scan(self, subdir: str, kind: str, decode: Callable[[dict], T]) -> list[T]:
        results: list[T] = []
        for path in self.store.list_json(subdir):
            try:
                results.append(decode(self.store.read_json(path)))
            except _DECODE_ERRORS as e:
                self._warn_skipped(kind, path, e)
        return results

    def _warn_skipped(self, kind: str, path: Path, error: Exception) -> None:
        self.store.log_action(
            f"Warning: Could not index {kind} from '{path}' during index rebuild: {error}",
            level=logging.WARNING,
        )

    # ── Incremental updates (each persists Context) ───────────

    def put_session(self, summary: SessionSummary) -> None:
        self._require().indexes.sessions[summary.id] = summary
        self.save()

    def drop_session(self, session_id: str) -> None:
        self._require().indexes.sessions.pop(session_id, None)
        self.save()

    def put_role(self, summary: RoleSummary) -> None:
        self._require().indexes.roles[summary.name] = summary
        self.save()

    def drop_role(self, name: str) -> None:
        self._require().indexes.roles.pop(name, None)
        self.save()

    def put_preference(self, summary: PreferenceSummary) -> None:
        self._require().indexes.preferences[summary.id] = summary
        self.save()

    def drop_preference(self, pref_id: str) -> None:
        self._require().indexes.preferences.pop(pref_id, None)
        self.save()
