"""Tests for the CLI connector's slash commands and rendering."""

import pytest
from pathlib import Path

from nani.codec import Response
from nani.config import NaniConfig, SessionConfig
from nani.connectors.cli import HELP, CLIConnector
from nani.core import Exchange, Nani
from nani.errors import ProviderError, ResponseParseError
from nani.workspace import Workspace
from nani.workspace.models import Role


class NullProvider:
    async def establish_session(self, system_instructions: str, schema_hint: str) -> str:
        return ""

    async def send_prompt(self, text: str) -> str:
        return ""


@pytest.fixture
def cli(workspace: Workspace) -> CLIConnector:
    config = NaniConfig(session=SessionConfig(label="chat"))
    return CLIConnector(Nani(workspace, NullProvider(), config))


class TestCommands:
    def test_new_session(self, cli: CLIConnector, workspace: Workspace):
        out = cli.handle_command("/new release notes")
        session = workspace.sessions.active()
        assert session.label == "release notes"
        assert session.id in out

    def test_new_uses_configured_label(self, cli: CLIConnector, workspace: Workspace):
        cli.handle_command("/new")
        assert workspace.sessions.active().label == "chat"

    def test_archive_and_list(self, cli: CLIConnector, workspace: Workspace):
        cli.handle_command("/new first")
        session_id = workspace.sessions.active().id
        assert cli.handle_command("/archive") == "Archived active session."
        assert session_id in cli.handle_command("/sessions")

    def test_sessions_empty(self, cli: CLIConnector):
        assert cli.handle_command("/sessions") == "(no archived sessions)"

    def test_resume(self, cli: CLIConnector, workspace: Workspace):
        cli.handle_command("/new first")
        session_id = workspace.sessions.active().id
        cli.handle_command("/new second")
        out = cli.handle_command(f"/resume {session_id}")
        assert out.startswith(f"Resumed session {session_id}")
        assert workspace.sessions.active().id == session_id

    def test_resume_unknown_reports_error(self, cli: CLIConnector):
        assert cli.handle_command("/resume nope").startswith("[error]")

    def test_roles_and_switch(self, cli: CLIConnector, workspace: Workspace):
        workspace.roles.save(Role(name="reviewer", label="Reviewer", description="Reviews"))
        assert "reviewer  Reviewer: Reviews" in cli.handle_command("/roles")
        cli.handle_command("/new")
        cli.handle_command("/role reviewer")
        assert workspace.sessions.active().role.name == "reviewer"

    def test_role_without_session(self, cli: CLIConnector):
        assert cli.handle_command("/role documenter").startswith("[error]")

    def test_source(self, cli: CLIConnector, workspace: Workspace, tmp_path: Path):
        src = tmp_path / "a file.py"
        src.write_text("pass\n")
        cli.handle_command("/new")
        cli.handle_command(f'/source "{src}"')
        assert workspace.sessions.active().sources == [str(src)]

    def test_preferences(self, cli: CLIConnector, workspace: Workspace):
        out = cli.handle_command("/pref use type hints")
        pref_id = out.rsplit(" ", 1)[-1]
        assert "use type hints" in cli.handle_command("/prefs")
        cli.handle_command(f"/unpref {pref_id}")
        assert cli.handle_command("/prefs") == "(no preferences)"

    def test_refresh(self, cli: CLIConnector):
        assert cli.handle_command("/refresh") == "Indexes refreshed."

    def test_help_and_unknown(self, cli: CLIConnector):
        assert cli.handle_command("/help") == HELP
        out = cli.handle_command("/bogus")
        assert out.startswith("Unknown command: /bogus")

    def test_unbalanced_quotes(self, cli: CLIConnector):
        assert cli.handle_command('/pref "open').startswith("[error]")

    def test_unpref_path_reports_error(self, cli: CLIConnector, workspace: Workspace):
        cli.handle_command("/new")
        assert cli.handle_command("/unpref ../session").startswith("[error]")
        assert workspace.sessions.active() is not None


class TestRender:
    def test_structured(self, cli: CLIConnector):
        exchange = Exchange(message="q", response=Response("why", "what", "body"))
        out = cli.render(exchange)
        assert "Summary: what" in out
        assert "Thought Process: why" in out
        assert out.endswith("body")

    def test_fallback_notes_error(self, cli: CLIConnector):
        fallback = Response("No reasoning block", "No summary block", "raw")
        exchange = Exchange(
            message="q", response=fallback, error=ResponseParseError("bad json", fallback)
        )
        assert "[unstructured reply: bad json]" in cli.render(exchange)

    def test_provider_error(self, cli: CLIConnector):
        exchange = Exchange(message="q", error=ProviderError("down"))
        assert cli.render(exchange) == "\n[error] down"
