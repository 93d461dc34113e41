"""SessionManager — the single active session, archiving and resumption.

The active session lives in ``session.json``; archived sessions live in
``sessions/<id>.json`` and are indexed by id. Sessions persist their role
by name and have it re-attached from the RoleRegistry on every load.

Active slot states: Empty -> Active (start, resume), Active -> Empty
(archive), Active -> Active (start, resume; both archive first).
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from pathlib import Path

from nani.errors import NoActiveSessionError, NotFoundError, WorkspaceIOError
from nani.workspace.index import IndexManager
from nani.workspace.models import (
    Chat,
    Metadata,
    SavedMessage,
    SavedResponse,
    Session,
    SessionSummary,
    now,
)
from nani.workspace.roles import RoleRegistry
from nani.workspace.store import ArtifactStore, is_valid_key

logger = logging.getLogger(__name__)

RESPONSE_OFFSET = timedelta(seconds=1)


class SessionManager:
    def __init__(self, store: ArtifactStore, index: IndexManager, roles: RoleRegistry) -> None:
        self.store = store
        self.index = index
        self.roles = roles

    # ── Loading ───────────────────────────────────────────────

    def _read(self, path: Path) -> Session:
        """Decode a session file and rehydrate its role."""
        try:
            data = self.store.read_json(path)
        except FileNotFoundError:
            raise
        except (OSError, ValueError) as e:
            raise WorkspaceIOError(f"failed to read session file {path}: {e}") from e
        try:
            session = Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise WorkspaceIOError(f"failed to parse session data from {path}: {e}") from e
        session.role = self.roles.load(session.role.name)
        return session

    def active(self) -> Session | None:
        """The active session, or None when the slot is empty."""
        try:
            return self._read(self.store.active_session_path)
        except FileNotFoundError:
            return None

    def _require_active(self) -> Session:
        session = self.active()
        if session is None:
            raise NoActiveSessionError("no active session")
        return session

    def _save_active(self, session: Session) -> None:
        self.store.write_json(self.store.active_session_path, session.to_dict())

    # ── Lifecycle ─────────────────────────────────────────────

    def ensure_active(self, label: str, role_name: str = "") -> Session:
        """Return the active session, starting one if the slot is empty."""
        session = self.active()
        if session is not None:
            return session
        return self.start(label, role_name)

    def start(self, label: str, role_name: str = "") -> Session:
        """Archive any active session, then create and activate a new one."""
        self.archive()

        settings = self.index.context.settings
        role_to_use = settings.default_role
        if role_name:
            if self.roles.exists(role_name):
                role_to_use = role_name
            else:
                self.store.log_action(
                    f"Warning: Desired role '{role_name}' not found. "
                    f"Falling back to default role '{settings.default_role}'.",
                    level=logging.WARNING,
                )
        role = self.roles.load(role_to_use)

        session = Session(
            id=str(uuid.uuid4()),
            label=label,
            role=role,
            metadata=Metadata.fresh(),
        )
        self._save_active(session)
        self.store.log_action(
            f"Started session {session.id} with label '{label}' and role '{role.name}'"
        )
        return session

    def archive(self) -> None:
        """Move the active session into the archive. No-op when empty."""
        path = self.store.active_session_path
        if not path.exists():
            return
        session = self._read(path)
        self.store.write_json(self.store.archived_session_path(session.id), session.to_dict())
        self.store.remove(path, missing_ok=False)
        self.index.put_session(session.summary())
        self.store.log_action(f"Archived session {session.id}")

    def resume(self, session_id: str) -> Session:
        """Archive the active session and reactivate an archived one."""
        if not is_valid_key(session_id):
            raise NotFoundError(f"archived session with ID '{session_id}' not found")
        self.archive()

        archive_path = self.store.archived_session_path(session_id)
        try:
            session = self._read(archive_path)
        except FileNotFoundError as e:
            raise NotFoundError(f"archived session with ID '{session_id}' not found") from e

        self._save_active(session)
        self.index.drop_session(session.id)

        try:
            self.store.remove(archive_path)
        except WorkspaceIOError as e:
            # Active slot is already set; only warn
            self.store.log_action(
                f"Warning: Failed to remove archived session file '{archive_path}' "
                f"after resuming: {e}",
                level=logging.WARNING,
            )

        self.store.log_action(f"Resumed archived session {session_id}")
        return session

    def list_archived(self) -> list[SessionSummary]:
        """Archived session summaries, most recently updated first."""
        sessions = self.index.context.indexes.sessions.values()
        return sorted(sessions, key=lambda s: s.last_updated, reverse=True)

    # ── Mutations of the active session ───────────────────────

    def add_source(self, source: str | Path) -> Session:
        """Attach an existing file to the active session. Duplicates are ignored."""
        session = self._require_active()
        source_path = str(source)
        if not Path(source_path).exists():
            raise NotFoundError(f"source file {source_path} does not exist")
        if source_path in session.sources:
            return session

        session.sources.append(source_path)
        session.metadata.last_updated = now()
        self._save_active(session)
        self.store.log_action(f"Added source {source_path} to session {session.id}")
        return session

    def add_interaction(self, message: str, response: str) -> Chat:
        """Append a message/response pair to the active session's chat log."""
        session = self._require_active()
        at = now()
        if session.chat and at <= session.chat[-1].message.timestamp:
            at = session.chat[-1].message.timestamp + timedelta(microseconds=1)
        chat = Chat(
            id=str(uuid.uuid4()),
            message=SavedMessage(content=message, timestamp=at),
            response=SavedResponse(content=response, timestamp=at + RESPONSE_OFFSET),
        )
        session.chat.append(chat)
        session.metadata.last_updated = at
        self._save_active(session)
        self.store.log_action(f"Added interaction (chat ID: {chat.id}) to session {session.id}")
        return chat

    def switch_role(self, role_name: str) -> Session:
        """Replace the active session's role with a freshly loaded one."""
        session = self._require_active()
        session.role = self.roles.load(role_name)
        session.metadata.last_updated = now()
        self._save_active(session)
        self.store.log_action(f"Switched session {session.id} to role {role_name}")
        return session
