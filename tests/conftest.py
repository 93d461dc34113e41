"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from nani.workspace import Workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    ws = Workspace(tmp_path)
    ws.init("demo", "alice", "https://example.com/demo.git")
    return ws
