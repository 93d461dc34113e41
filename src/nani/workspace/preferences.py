"""PreferenceStore — CRUD over ``preferences/<id>.json``."""

from __future__ import annotations

import uuid

from nani.errors import NotFoundError, WorkspaceIOError
from nani.workspace.index import IndexManager
from nani.workspace.models import Preference, PreferenceSummary, now
from nani.workspace.store import ArtifactStore, is_valid_key


class PreferenceStore:
    def __init__(self, store: ArtifactStore, index: IndexManager) -> None:
        self.store = store
        self.index = index

    def save(self, pref: Preference) -> None:
        if not is_valid_key(pref.id):
            raise ValueError(f"invalid preference id: {pref.id!r}")
        self.store.write_json(self.store.preference_path(pref.id), pref.to_dict())
        self.index.put_preference(pref.summary())
        self.store.log_action(f"Saved preference {pref.id}")

    def add(self, content: str) -> Preference:
        """Store a new preference with a generated id."""
        pref = Preference(id=str(uuid.uuid4()), content=content, timestamp=now())
        self.save(pref)
        return pref

    def load(self, pref_id: str) -> Preference:
        if not is_valid_key(pref_id):
            raise NotFoundError(f"preference '{pref_id}' not found")
        path = self.store.preference_path(pref_id)
        try:
            data = self.store.read_json(path)
        except FileNotFoundError as e:
            raise NotFoundError(f"preference '{pref_id}' not found") from e
        except (OSError, ValueError) as e:
            raise WorkspaceIOError(f"failed to read preference {pref_id}: {e}") from e
        try:
            return Preference.from_dict(data)
        except (KeyError, TypeError) as e:
            raise WorkspaceIOError(f"failed to parse preference {pref_id}: {e}") from e

    def delete(self, pref_id: str) -> None:
        """Remove a preference. Deleting an unknown id succeeds; an invalid id does not."""
        if not is_valid_key(pref_id):
            raise NotFoundError(f"preference '{pref_id}' not found")
        self.store.remove(self.store.preference_path(pref_id))
        self.index.drop_preference(pref_id)
        self.store.log_action(f"Deleted preference {pref_id}")

    def list(self) -> list[PreferenceSummary]:
        prefs = self.index.context.indexes.preferences
        return [prefs[k] for k in sorted(prefs)]

    def load_all(self) -> list[Preference]:
        """Full preferences in index order, skipping ones that vanished from disk."""
        loaded = []
        for summary in self.list():
            try:
                loaded.append(self.load(summary.id))
            except NotFoundError:
                continue
        return loaded
