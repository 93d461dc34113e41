"""Configuration loading from environment variables and nani.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "nani.toml"


@dataclass
class ProviderConfig:
    """Configuration for the AI provider."""

    name: str = "anthropic_api"
    model: str | None = None
    timeout: int = 30
    max_tokens: int = 4096


@dataclass
class WorkspaceConfig:
    """Where the .nani directory lives, plus informational project metadata."""

    dir: Path = field(default_factory=Path.cwd)
    project: str = ""
    owner: str = ""
    repository: str = ""


@dataclass
class SessionConfig:
    """Defaults for the session created when none is active."""

    label: str = "default"
    role: str = ""


@dataclass
class NaniConfig:
    """Top-level nani configuration."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> NaniConfig:
    """Load configuration from environment variables and optional nani.toml.

    Priority: environment variables > nani.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.nani/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".nani" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    provider_data = file_data.get("provider", {})
    workspace_data = file_data.get("workspace", {})
    session_data = file_data.get("session", {})

    config = NaniConfig(
        provider=ProviderConfig(
            name=os.getenv("NANI_PROVIDER", provider_data.get("name", "anthropic_api")),
            model=os.getenv("NANI_MODEL", provider_data.get("model")),
            timeout=int(os.getenv("NANI_TIMEOUT", provider_data.get("timeout", 30))),
            max_tokens=int(provider_data.get("max_tokens", 4096)),
        ),
        workspace=WorkspaceConfig(
            dir=Path(os.getenv("NANI_WORKSPACE_DIR", workspace_data.get("dir", str(Path.cwd())))),
            project=workspace_data.get("project", ""),
            owner=workspace_data.get("owner", ""),
            repository=workspace_data.get("repository", ""),
        ),
        session=SessionConfig(
            label=os.getenv("NANI_SESSION_LABEL", session_data.get("label", "default")),
            role=os.getenv("NANI_ROLE", session_data.get("role", "")),
        ),
        log_level=os.getenv("NANI_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
