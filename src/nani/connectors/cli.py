"""Terminal REPL — reads prompts and slash commands from stdin."""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from typing import TYPE_CHECKING

from nani.errors import BusyError, NaniError

if TYPE_CHECKING:
    from nani.core import Exchange, Nani

logger = logging.getLogger(__name__)

HELP = """\
Commands:
  /new [label]       archive the active session and start a new one
  /archive           archive the active session
  /resume <id>       make an archived session active again
  /sessions          list archived sessions
  /roles             list roles
  /role <name>       switch the active session's role
  /source <path>     attach a file to the active session
  /prefs             list preferences
  /pref <text>       add a preference
  /unpref <id>       delete a preference
  /refresh           rebuild indexes from disk
  /help              show this help
  exit               quit"""


class CLIConnector:
    """Interactive REPL connector — reads from stdin, writes to stdout."""

    def __init__(self, nani: Nani) -> None:
        self.nani = nani
        self._running = False

    @property
    def name(self) -> str:
        return "cli"

    async def start(self) -> None:
        self._running = True
        loop = asyncio.get_event_loop()

        print("nani (type /help for commands, 'exit' or Ctrl+C to quit)")
        print("-" * 48)

        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_input)
            except (EOFError, KeyboardInterrupt):
                print("\nBye!")
                break

            if line is None or line.strip().lower() in ("exit", "quit"):
                print("Bye!")
                break

            text = line.strip()
            if not text:
                continue

            if text.startswith("/"):
                print(self.handle_command(text))
                continue

            try:
                exchange = await self.nani.ask(text)
            except BusyError as e:
                print(f"\n[busy] {e}")
                continue
            print(self.render(exchange))

    def _read_input(self) -> str | None:
        try:
            sys.stdout.write("\nYou: ")
            sys.stdout.flush()
            raw = sys.stdin.buffer.readline()
            if not raw:
                return None
            return raw.decode("utf-8", errors="replace").rstrip("\n")
        except EOFError:
            return None

    async def stop(self) -> None:
        self._running = False

    def render(self, exchange: Exchange) -> str:
        if exchange.response is None:
            return f"\n[error] {exchange.error}"
        r = exchange.response
        out = f"\nAI: Summary: {r.summary}\n\nThought Process: {r.reasoning}\n\n{r.content}"
        if exchange.error is not None:
            out += f"\n  [unstructured reply: {exchange.error}]"
        return out

    # ── Slash commands ────────────────────────────────────────

    def handle_command(self, line: str) -> str:
        """Run one slash command and return the text to print."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            return f"[error] {e}"
        cmd, args = parts[0].lower(), parts[1:]
        ws = self.nani.workspace
        cfg = self.nani.config.session

        try:
            if cmd == "/new":
                label = " ".join(args) or cfg.label
                s = ws.sessions.start(label, cfg.role)
                return f"Started session {s.id} ({s.label}, role {s.role.name})"
            if cmd == "/archive":
                ws.sessions.archive()
                return "Archived active session."
            if cmd == "/resume" and args:
                s = ws.sessions.resume(args[0])
                return f"Resumed session {s.id} ({s.label}, {len(s.chat)} interactions)"
            if cmd == "/sessions":
                rows = [
                    f"  {s.id}  {s.label}  [{s.role_name}]  {s.last_updated:%Y-%m-%d %H:%M}"
                    for s in ws.sessions.list_archived()
                ]
                return "\n".join(rows) or "(no archived sessions)"
            if cmd == "/roles":
                rows = [f"  {r.name}  {r.label}: {r.description}" for r in ws.roles.list()]
                return "\n".join(rows) or "(no roles)"
            if cmd == "/role" and args:
                s = ws.sessions.switch_role(args[0])
                return f"Session {s.id} now uses role {s.role.name}"
            if cmd == "/source" and args:
                ws.sessions.add_source(args[0])
                return f"Added source {args[0]}"
            if cmd == "/prefs":
                rows = [f"  {p.id}  {p.content_snippet}" for p in ws.preferences.list()]
                return "\n".join(rows) or "(no preferences)"
            if cmd == "/pref" and args:
                p = ws.preferences.add(" ".join(args))
                return f"Saved preference {p.id}"
            if cmd == "/unpref" and args:
                ws.preferences.delete(args[0])
                return f"Deleted preference {args[0]}"
            if cmd == "/refresh":
                ws.refresh_indexes()
                return "Indexes refreshed."
            if cmd == "/help":
                return HELP
        except NaniError as e:
            return f"[error] {e}"
        return f"Unknown command: {line}\n\n{HELP}"
