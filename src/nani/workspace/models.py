"""Workspace records and their JSON shapes.

Keys on disk are camelCase. A Session stores its role by name only; the
full Role is re-attached by the SessionManager after loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
SNIPPET_LENGTH = 100


def now() -> datetime:
    return datetime.now().astimezone()


def format_time(value: datetime) -> str:
    """RFC 3339 with offset, as written to every record."""
    return value.isoformat()


def parse_time(value: str | None) -> datetime:
    if not value:
        return ZERO_TIME
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    # Offset-less stamps are read as UTC so they compare with now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def snippet(content: str) -> str:
    if len(content) > SNIPPET_LENGTH:
        return content[:SNIPPET_LENGTH] + "..."
    return content


# ── Summaries ─────────────────────────────────────────────────


@dataclass
class SessionSummary:
    id: str
    label: str
    role_name: str
    created_at: datetime
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "roleName": self.role_name,
            "createdAt": format_time(self.created_at),
            "lastUpdated": format_time(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionSummary:
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            role_name=data.get("roleName", ""),
            created_at=parse_time(data.get("createdAt")),
            last_updated=parse_time(data.get("lastUpdated")),
        )


@dataclass
class RoleSummary:
    name: str
    label: str = ""
    description: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "label": self.label, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> RoleSummary:
        return cls(
            name=data["name"],
            label=data.get("label", ""),
            description=data.get("description", ""),
        )


@dataclass
class PreferenceSummary:
    id: str
    timestamp: datetime
    content_snippet: str = ""

    def to_dict(self) -> dict:
        data = {"id": self.id, "timestamp": format_time(self.timestamp)}
        if self.content_snippet:
            data["contentSnippet"] = self.content_snippet
        return data

    @classmethod
    def from_dict(cls, data: dict) -> PreferenceSummary:
        return cls(
            id=data["id"],
            timestamp=parse_time(data.get("timestamp")),
            content_snippet=data.get("contentSnippet", ""),
        )


# ── Context ───────────────────────────────────────────────────


@dataclass
class Settings:
    default_language: str = "en"
    default_role: str = "documenter"
    system_prompt: str = ""

    def to_dict(self) -> dict:
        return {
            "defaultLanguage": self.default_language,
            "defaultRole": self.default_role,
            "systemPrompt": self.system_prompt,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        return cls(
            default_language=data.get("defaultLanguage", "en"),
            default_role=data.get("defaultRole", "documenter"),
            system_prompt=data.get("systemPrompt", ""),
        )


@dataclass
class Project:
    """Informational project metadata."""

    name: str = ""
    owner: str = ""
    repository: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "owner": self.owner, "repository": self.repository}

    @classmethod
    def from_dict(cls, data: dict) -> Project:
        return cls(
            name=data.get("name", ""),
            owner=data.get("owner", ""),
            repository=data.get("repository", ""),
        )


@dataclass
class ArtifactIndexes:
    sessions: dict[str, SessionSummary] = field(default_factory=dict)
    roles: dict[str, RoleSummary] = field(default_factory=dict)
    preferences: dict[str, PreferenceSummary] = field(default_factory=dict)

    def clear(self) -> None:
        self.sessions.clear()
        self.roles.clear()
        self.preferences.clear()

    def to_dict(self) -> dict:
        # Sorted keys keep context.json stable across rebuilds
        return {
            "sessions": {k: self.sessions[k].to_dict() for k in sorted(self.sessions)},
            "roles": {k: self.roles[k].to_dict() for k in sorted(self.roles)},
            "preferences": {
                k: self.preferences[k].to_dict() for k in sorted(self.preferences)
            },
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> ArtifactIndexes:
        data = data or {}
        return cls(
            sessions={
                k: SessionSummary.from_dict(v) for k, v in (data.get("sessions") or {}).items()
            },
            roles={k: RoleSummary.from_dict(v) for k, v in (data.get("roles") or {}).items()},
            preferences={
                k: PreferenceSummary.from_dict(v)
                for k, v in (data.get("preferences") or {}).items()
            },
        )


@dataclass
class Context:
    """Workspace-wide settings, project metadata and artifact indexes."""

    workspace: str
    settings: Settings = field(default_factory=Settings)
    project: Project = field(default_factory=Project)
    indexes: ArtifactIndexes = field(default_factory=ArtifactIndexes)

    def to_dict(self) -> dict:
        return {
            "workspace": self.workspace,
            "settings": self.settings.to_dict(),
            "project": self.project.to_dict(),
            "indexes": self.indexes.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Context:
        return cls(
            workspace=data.get("workspace", ""),
            settings=Settings.from_dict(data.get("settings") or {}),
            project=Project.from_dict(data.get("project") or {}),
            indexes=ArtifactIndexes.from_dict(data.get("indexes")),
        )


# ── Artifacts ─────────────────────────────────────────────────


@dataclass
class Role:
    """A named persona assignable to a session."""

    name: str
    label: str = ""
    persona: str = ""
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "persona": self.persona,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Role:
        return cls(
            name=data["name"],
            label=data.get("label", ""),
            persona=data.get("persona", ""),
            description=data.get("description", ""),
        )

    def summary(self) -> RoleSummary:
        return RoleSummary(name=self.name, label=self.label, description=self.description)


@dataclass
class Preference:
    """A free-text instruction applied to every request."""

    id: str
    content: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"id": self.id, "content": self.content, "timestamp": format_time(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict) -> Preference:
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            timestamp=parse_time(data.get("timestamp")),
        )

    def summary(self) -> PreferenceSummary:
        return PreferenceSummary(
            id=self.id, timestamp=self.timestamp, content_snippet=snippet(self.content)
        )


@dataclass
class SavedMessage:
    content: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"content": self.content, "timestamp": format_time(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict) -> SavedMessage:
        return cls(content=data.get("content", ""), timestamp=parse_time(data.get("timestamp")))


# Same shape as a message, kept apart for readability at call sites
SavedResponse = SavedMessage


@dataclass
class Chat:
    """One message/response pair."""

    id: str
    message: SavedMessage
    response: SavedResponse

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message.to_dict(),
            "response": self.response.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Chat:
        return cls(
            id=data.get("id", ""),
            message=SavedMessage.from_dict(data.get("message") or {}),
            response=SavedResponse.from_dict(data.get("response") or {}),
        )


@dataclass
class Metadata:
    created_at: datetime
    last_updated: datetime
    archive_after: datetime
    priority: str = "medium"
    session_duration: str = "3600"

    @classmethod
    def fresh(cls, at: datetime | None = None) -> Metadata:
        at = at or now()
        return cls(created_at=at, last_updated=at, archive_after=at + timedelta(days=7))

    def to_dict(self) -> dict:
        return {
            "createdAt": format_time(self.created_at),
            "priority": self.priority,
            "sessionDuration": self.session_duration,
            "lastUpdated": format_time(self.last_updated),
            "archiveAfter": format_time(self.archive_after),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Metadata:
        return cls(
            created_at=parse_time(data.get("createdAt")),
            priority=data.get("priority", "medium"),
            session_duration=data.get("sessionDuration", "3600"),
            last_updated=parse_time(data.get("lastUpdated")),
            archive_after=parse_time(data.get("archiveAfter")),
        )


@dataclass
class Session:
    """A conversation: label, role, source files and chat log."""

    id: str
    label: str
    role: Role
    metadata: Metadata
    sources: list[str] = field(default_factory=list)
    chat: list[Chat] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "role": self.role.name,
            "sources": list(self.sources),
            "chat": [c.to_dict() for c in self.chat],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Session:
        """Decode a session record. Only ``role.name`` is populated."""
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            role=Role(name=data.get("role", "")),
            sources=list(data.get("sources") or []),
            chat=[Chat.from_dict(c) for c in data.get("chat") or []],
            metadata=Metadata.from_dict(data.get("metadata") or {}),
        )

    def summary(self) -> SessionSummary:
        return SessionSummary(
            id=self.id,
            label=self.label,
            role_name=self.role.name,
            created_at=self.metadata.created_at,
            last_updated=self.metadata.last_updated,
        )
