"""File-backed workspace — sessions, roles, preferences and their indexes.

Layout:
    <project>/.nani/
    ├── context.json                   # Settings, project metadata, artifact indexes
    ├── session.json                   # Active session (absent when none)
    ├── sessions/<id>.json             # Archived sessions
    ├── roles/<name>.json              # Personas
    ├── preferences/<id>.json          # Free-text user instructions
    └── logs/2026-02-18.log            # "<RFC3339>: <action>" lines (append-only)

Every mutation writes the artifact file, updates the index in context.json
and appends to the daily log before returning.
"""

from nani.workspace.workspace import Workspace

__all__ = ["Workspace"]
