"""Tests for the ArtifactStore primitives."""

from __future__ import annotations

import json
import re
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from nani.errors import WorkspaceIOError
from nani.workspace.store import ArtifactStore, is_valid_key


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path)


class TestLayout:
    def test_creates_directory_structure(self, store: ArtifactStore):
        assert store.root.name == ".nani"
        for name in ("preferences", "sessions", "roles", "logs"):
            assert (store.root / name).is_dir()

    def test_idempotent(self, store: ArtifactStore):
        store.ensure_layout()
        store.ensure_layout()
        assert (store.root / "roles").is_dir()

    def test_mkdir_failure_is_wrapped(self, tmp_path: Path):
        with patch("pathlib.Path.mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(WorkspaceIOError, match="failed to create directory"):
                ArtifactStore(tmp_path)


class TestJson:
    def test_write_pretty_printed(self, store: ArtifactStore):
        path = store.root / "roles" / "x.json"
        store.write_json(path, {"name": "x", "nested": {"a": 1}})
        text = path.read_text(encoding="utf-8")
        assert text == '{\n  "name": "x",\n  "nested": {\n    "a": 1\n  }\n}\n'

    def test_write_replaces_whole_file(self, store: ArtifactStore):
        path = store.root / "roles" / "x.json"
        store.write_json(path, {"persona": "a very long persona " * 50})
        store.write_json(path, {"persona": "short"})
        assert json.loads(path.read_text(encoding="utf-8")) == {"persona": "short"}

    def test_write_leaves_no_temp_file(self, store: ArtifactStore):
        store.write_json(store.context_path, {})
        assert [p.name for p in store.root.glob("*.tmp")] == []

    def test_file_mode(self, store: ArtifactStore):
        store.write_json(store.context_path, {})
        assert stat.S_IMODE(store.context_path.stat().st_mode) == 0o644

    def test_utf8_preserved(self, store: ArtifactStore):
        store.write_json(store.context_path, {"label": "résumé 文档"})
        assert "résumé 文档" in store.context_path.read_text(encoding="utf-8")
        assert store.read_json(store.context_path) == {"label": "résumé 文档"}

    def test_write_into_missing_directory_fails(self, store: ArtifactStore):
        with pytest.raises(WorkspaceIOError, match="failed to write"):
            store.write_json(store.root / "missing" / "x.json", {})

    def test_failed_write_keeps_previous_content(self, store: ArtifactStore):
        store.write_json(store.context_path, {"v": 1})
        with patch("nani.workspace.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(WorkspaceIOError):
                store.write_json(store.context_path, {"v": 2})
        assert store.read_json(store.context_path) == {"v": 1}

    def test_read_missing_raises_file_not_found(self, store: ArtifactStore):
        with pytest.raises(FileNotFoundError):
            store.read_json(store.root / "nope.json")

    def test_list_json_sorted(self, store: ArtifactStore):
        for name in ("b", "a", "c"):
            store.write_json(store.role_path(name), {"name": name})
        (store.root / "roles" / "notes.txt").write_text("ignored")
        assert [p.stem for p in store.list_json("roles")] == ["a", "b", "c"]


class TestRemove:
    def test_remove_existing(self, store: ArtifactStore):
        path = store.role_path("x")
        store.write_json(path, {})
        assert store.remove(path) is True
        assert not path.exists()

    def test_remove_missing_is_noop(self, store: ArtifactStore):
        assert store.remove(store.role_path("ghost")) is False

    def test_remove_missing_strict(self, store: ArtifactStore):
        with pytest.raises(FileNotFoundError):
            store.remove(store.role_path("ghost"), missing_ok=False)

    def test_other_errors_propagate(self, store: ArtifactStore):
        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            with pytest.raises(WorkspaceIOError, match="failed to delete"):
                store.remove(store.role_path("x"))


class TestActionLog:
    def test_appends_timestamped_lines(self, store: ArtifactStore):
        store.log_action("first")
        store.log_action("second")
        lines = store.read_log().splitlines()
        assert len(lines) == 2
        assert lines[0].endswith(": first")
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}: ", lines[1])

    def test_daily_file_name(self, store: ArtifactStore):
        store.log_action("hello")
        files = list((store.root / "logs").glob("*.log"))
        assert len(files) == 1
        assert re.match(r"^\d{4}-\d{2}-\d{2}\.log$", files[0].name)

    def test_read_log_missing_day(self, store: ArtifactStore):
        assert store.read_log("1999-01-01") == ""


class TestArtifactPaths:
    def test_plain_names(self, store: ArtifactStore):
        assert store.role_path("reviewer") == store.root / "roles" / "reviewer.json"
        assert store.preference_path("p-1").parent == store.root / "preferences"

    @pytest.mark.parametrize("key", ["", "../session", "a/b", "a\\b", ".hidden", "x..y"])
    def test_rejects_path_like_names(self, store: ArtifactStore, key: str):
        assert not is_valid_key(key)
        with pytest.raises(ValueError):
            store.role_path(key)
        with pytest.raises(ValueError):
            store.preference_path(key)
        with pytest.raises(ValueError):
            store.archived_session_path(key)

    def test_rejects_non_strings(self):
        assert not is_valid_key(None)
        assert not is_valid_key(5)
