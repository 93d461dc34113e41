"""ArtifactStore — the workspace directory and its JSON/log primitives.

No business logic lives here. Every write replaces the whole file, so a
failed write never leaves a half-written record behind.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from nani.errors import WorkspaceIOError

logger = logging.getLogger(__name__)

WORKSPACE_DIRNAME = ".nani"
SUBDIRS = ("preferences", "sessions", "roles", "logs")
FILE_MODE = 0o644
DIR_MODE = 0o755


def is_valid_key(key: object) -> bool:
    """True if ``key`` can name a file directly inside an artifact directory."""
    return (
        isinstance(key, str)
        and bool(key)
        and not key.startswith(".")
        and "/" not in key
        and "\\" not in key
        and ".." not in key
    )


class ArtifactStore:
    """Owns ``<base>/.nani`` and everything below it."""

    def __init__(self, base_dir: Path) -> None:
        self.root = Path(base_dir) / WORKSPACE_DIRNAME
        self.ensure_layout()

    # ── Layout ────────────────────────────────────────────────

    def ensure_layout(self) -> None:
        """Create the root and its subdirectories. Idempotent."""
        for d in (self.root, *(self.root / name for name in SUBDIRS)):
            try:
                d.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as e:
                raise WorkspaceIOError(f"failed to create directory {d}: {e}") from e

    @property
    def context_path(self) -> Path:
        return self.root / "context.json"

    @property
    def active_session_path(self) -> Path:
        return self.root / "session.json"

    def _artifact_path(self, subdir: str, key: str) -> Path:
        if not is_valid_key(key):
            raise ValueError(f"invalid artifact name: {key!r}")
        return self.root / subdir / f"{key}.json"

    def archived_session_path(self, session_id: str) -> Path:
        return self._artifact_path("sessions", session_id)

    def role_path(self, name: str) -> Path:
        return self._artifact_path("roles", name)

    def preference_path(self, pref_id: str) -> Path:
        return self._artifact_path("preferences", pref_id)

    def log_path(self, day: str | None = None) -> Path:
        d = day or datetime.now().strftime("%Y-%m-%d")
        return self.root / "logs" / f"{d}.log"

    # ── JSON primitives ───────────────────────────────────────

    def write_json(self, path: Path, data: Any) -> None:
        """Create or replace ``path`` with pretty-printed JSON."""
        text = json.dumps(data, ensure_ascii=False, indent=2) + "\n"
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(text, encoding="utf-8")
            os.chmod(tmp, FILE_MODE)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise WorkspaceIOError(f"failed to write {path}: {e}") from e

    def read_json(self, path: Path) -> Any:
        """Decode a JSON file. Missing files raise FileNotFoundError unchanged."""
        text = path.read_text(encoding="utf-8")
        return json.loads(text)

    def list_json(self, subdir: str) -> list[Path]:
        """JSON files of a subdirectory, sorted by name."""
        directory = self.root / subdir
        if not directory.is_dir():
            return []
        try:
            return sorted(p for p in directory.glob("*.json") if p.is_file())
        except OSError as e:
            raise WorkspaceIOError(f"failed to read directory {directory}: {e}") from e

    def remove(self, path: Path, missing_ok: bool = True) -> bool:
        """Delete a file. Returns False when it was already absent."""
        try:
            path.unlink()
        except FileNotFoundError:
            if missing_ok:
                return False
            raise
        except OSError as e:
            raise WorkspaceIOError(f"failed to delete {path}: {e}") from e
        return True

    # ── Action log ────────────────────────────────────────────

    def log_action(self, action: str, level: int = logging.INFO) -> None:
        """Append ``"<RFC3339>: <action>"`` to today's log file."""
        logger.log(level, action)
        entry = f"{datetime.now().astimezone().isoformat(timespec='seconds')}: {action}\n"
        path = self.log_path()
        try:
            with path.open("a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            raise WorkspaceIOError(f"failed to write log {path}: {e}") from e

    def read_log(self, day: str | None = None) -> str:
        path = self.log_path(day)
        if path.exists():
            return path.read_text(encoding="utf-8")
        return ""
