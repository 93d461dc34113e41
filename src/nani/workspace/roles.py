"""RoleRegistry — CRUD over ``roles/<name>.json``.

Roles can also be authored as markdown: YAML front matter carries the
name, label and description, the body is the persona text.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from nani.errors import NotFoundError, WorkspaceIOError
from nani.workspace.index import IndexManager
from nani.workspace.models import Role, RoleSummary
from nani.workspace.store import ArtifactStore, is_valid_key

logger = logging.getLogger(__name__)

DEFAULT_ROLE = Role(
    name="documenter",
    label="Code Documenter",
    persona=(
        "You are a meticulous technical writer who creates clear, detailed markdown "
        "documentation with a high level of verbosity, including examples where "
        "appropriate, and adheres to user-specified preferences."
    ),
    description=(
        "Generates detailed documentation for code files, tailored to user "
        "preferences in markdown format."
    ),
)


class RoleRegistry:
    def __init__(self, store: ArtifactStore, index: IndexManager) -> None:
        self.store = store
        self.index = index

    def save(self, role: Role) -> None:
        """Create or overwrite a role. Sessions keep referring to it by name."""
        if not is_valid_key(role.name):
            raise ValueError(f"invalid role name: {role.name!r}")
        self.store.write_json(self.store.role_path(role.name), role.to_dict())
        self.index.put_role(role.summary())
        self.store.log_action(f"Saved role {role.name}")

    def load(self, name: str) -> Role:
        """Read the full role from disk. The index is never consulted."""
        if not is_valid_key(name):
            raise NotFoundError(f"role '{name}' not found")
        path = self.store.role_path(name)
        try:
            data = self.store.read_json(path)
        except FileNotFoundError as e:
            raise NotFoundError(f"role '{name}' not found") from e
        except (OSError, ValueError) as e:
            raise WorkspaceIOError(f"failed to read role {name}: {e}") from e
        try:
            return Role.from_dict(data)
        except (KeyError, TypeError) as e:
            raise WorkspaceIOError(f"failed to parse role data from {name}: {e}") from e

    def delete(self, name: str) -> None:
        """Remove a role. Deleting an unknown role succeeds; an invalid name does not."""
        if not is_valid_key(name):
            raise NotFoundError(f"role '{name}' not found")
        self.store.remove(self.store.role_path(name))
        self.index.drop_role(name)
        self.store.log_action(f"Deleted role {name}")

    def exists(self, name: str) -> bool:
        return name in self.index.context.indexes.roles

    def list(self) -> list[RoleSummary]:
        roles = self.index.context.indexes.roles
        return [roles[k] for k in sorted(roles)]

    def ensure_default(self) -> None:
        """Write the built-in documenter role if its file is missing."""
        if not self.store.role_path(DEFAULT_ROLE.name).exists():
            self.save(DEFAULT_ROLE)

    # ── Markdown personas ─────────────────────────────────────

    def import_markdown(self, path: Path) -> Role:
        """Save a role from a markdown persona file with front matter."""
        try:
            post = frontmatter.load(str(path))
        except OSError as e:
            raise WorkspaceIOError(f"failed to read persona file {path}: {e}") from e
        role = Role(
            name=str(post.metadata.get("name") or Path(path).stem),
            label=str(post.metadata.get("label", "")),
            persona=post.content.strip(),
            description=str(post.metadata.get("description", "")),
        )
        self.save(role)
        return role

    def export_markdown(self, name: str, path: Path) -> None:
        role = self.load(name)
        post = frontmatter.Post(
            role.persona, name=role.name, label=role.label, description=role.description
        )
        try:
            Path(path).write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
        except OSError as e:
            raise WorkspaceIOError(f"failed to write persona file {path}: {e}") from e
        logger.info("Exported role %s to %s", name, path)
