"""Workspace — one long-lived store instance wiring the artifact components.

Construct it once, call ``init()``, and pass it to whatever needs state.
Access is single-writer: concurrent processes on the same directory race.
"""

from __future__ import annotations

import logging
from pathlib import Path

from nani.workspace.index import IndexManager
from nani.workspace.models import Context, Project
from nani.workspace.preferences import PreferenceStore
from nani.workspace.roles import RoleRegistry
from nani.workspace.sessions import SessionManager
from nani.workspace.store import ArtifactStore

logger = logging.getLogger(__name__)


class Workspace:
    """Sessions, roles and preferences under ``<base_dir>/.nani``."""

    def __init__(self, base_dir: Path) -> None:
        self.store = ArtifactStore(base_dir)
        self.index = IndexManager(self.store)
        self.roles = RoleRegistry(self.store, self.index)
        self.preferences = PreferenceStore(self.store, self.index)
        self.sessions = SessionManager(self.store, self.index, self.roles)

    @property
    def root(self) -> Path:
        return self.store.root

    @property
    def context(self) -> Context:
        if self.index.context is None:
            raise RuntimeError("Workspace context not initialized. Call Workspace.init() first.")
        return self.index.context

    def init(self, project_name: str = "", owner: str = "", repository: str = "") -> Context:
        """Create or load ``context.json`` and make sure the default role exists.

        Indexes are rebuilt from disk only when an existing context is loaded.
        """
        if self.index.exists():
            self.index.load()
            self.index.rebuild()
        else:
            self.index.create(Project(name=project_name, owner=owner, repository=repository))

        self.roles.ensure_default()
        self.store.log_action("Initialized workspace")
        return self.context

    def refresh_indexes(self) -> None:
        """Rescan artifacts on disk, e.g. after files were edited by hand."""
        self.store.log_action("Refreshing workspace indexes initiated.")
        self.index.rebuild()
        self.store.log_action("Workspace indexes refreshed successfully.")
