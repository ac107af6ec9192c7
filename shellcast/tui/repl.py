"""Interactive prompt loop for shellcast."""
from __future__ import annotations

import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import DEFAULT_SAVE_PATH, match_screen_size, read_settings, save_config
from ..errors import EmptyCommandError, ShellCastError
from ..runner import CommandOutcome, OutcomeStatus
from ..session import ShellCastSession
from ..themes import list_themes

HELP_LINES = [
    "help               Show this help message",
    "exit, quit         Exit ShellCast",
    "stream             Start streaming (prompts for RTMP URL if not set)",
    "stop               Stop streaming",
    "record             Start recording the session",
    "stoprecord         Stop recording the session",
    "status             Show streaming/recording state",
    "theme [NAME]       List themes or apply a theme by name",
    "timestamp [on|off] Enable or disable timestamps",
    "size [WxH]         Show or set screen size (e.g., 1280x720)",
    'split "c1" "c2"    Run multiple commands in split screen mode',
    "fontsize [SIZE]    Show or set font size",
    "save [FILE]        Save configuration to a file",
    "load [FILE]        Load configuration from a file",
    "",
    "Any other input is executed as a command.",
]


class ShellCastRepl:
    """Line-oriented control path running alongside the session."""

    def __init__(
        self,
        session: ShellCastSession,
        *,
        console: Optional[Console] = None,
        prompt_session: Optional[PromptSession] = None,
        ask: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.session = session
        self.console = console or session.console
        self._prompt = prompt_session
        self._ask = ask
        self.running = True
        self._commands: Dict[str, Callable[[str], None]] = {
            "help": self._command_help,
            "stream": self._command_stream,
            "stop": self._command_stop,
            "record": self._command_record,
            "stoprecord": self._command_stoprecord,
            "status": self._command_status,
            "theme": self._command_theme,
            "timestamp": self._command_timestamp,
            "size": self._command_size,
            "split": self._command_split,
            "fontsize": self._command_fontsize,
            "save": self._command_save,
            "load": self._command_load,
        }

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def run(self) -> None:
        """Start the interactive prompt loop."""
        if self._prompt is None:
            self._prompt = PromptSession(history=InMemoryHistory(), auto_suggest=AutoSuggestFromHistory())
        self.console.print("[bold green]ShellCast Interactive Mode[/]")
        self.console.print("Type [bold]help[/] for available commands, [bold]exit[/] or [bold]quit[/] to leave.")
        with patch_stdout():
            while self.running:
                try:
                    user_input = self._prompt.prompt("shellcast> ")
                except EOFError:
                    break
                except KeyboardInterrupt:
                    continue
                if not self.handle_line(user_input):
                    break

    def handle_line(self, raw: str) -> bool:
        """Process one input line; returns False when the loop should end."""
        stripped = raw.strip()
        if not stripped:
            return True

        command, _, args = stripped.partition(" ")
        command = command.lower()
        args = args.strip()

        if command in {"exit", "quit"}:
            self.running = False
            return False

        handler = self._commands.get(command)
        try:
            if handler is not None:
                handler(args)
            else:
                self._run_command(stripped)
        except ShellCastError as exc:
            self._error(f"{command}: {exc}")
        return True

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------
    def _command_help(self, args: str) -> None:
        self.console.print(Panel(Text("\n".join(HELP_LINES)), title="Available Commands"))

    def _command_stream(self, args: str) -> None:
        settings = self.session.settings
        if not settings.rtmp_url and not self.session.streaming:
            url = self._read_answer("Enter RTMP URL: ").strip()
            if not url:
                self.console.print("No RTMP URL provided")
                return
            settings.rtmp_url = url
        self.session.start_streaming()

    def _command_stop(self, args: str) -> None:
        self.session.stop_streaming()

    def _command_record(self, args: str) -> None:
        self.session.start_recording()

    def _command_stoprecord(self, args: str) -> None:
        self.session.stop_recording()

    def _command_status(self, args: str) -> None:
        table = Table(show_header=False)
        for key, value in self.session.status().items():
            table.add_row(key, "-" if value is None else str(value))
        self.console.print(table)

    def _command_theme(self, args: str) -> None:
        if not args:
            lines = [
                f"- {theme.key}: Font: {theme.font_color}, Background: {theme.background_color}"
                for theme in list_themes()
            ]
            self.console.print("Available themes:\n" + "\n".join(lines), markup=False)
            return
        self.session.settings.apply_theme(args)
        self.console.print(f"Applied theme: {args}", markup=False)

    def _command_timestamp(self, args: str) -> None:
        value = args.lower()
        if value not in {"on", "off"}:
            self.console.print("Usage: timestamp [on|off]", markup=False)
            return
        self.session.settings.show_timestamp = value == "on"
        self.console.print(f"Timestamps {'enabled' if value == 'on' else 'disabled'}")

    def _command_size(self, args: str) -> None:
        settings = self.session.settings
        if not args:
            self.console.print(f"Current screen size: {settings.screen_size}")
            return
        size = match_screen_size(args)
        if size is None:
            self.console.print("Usage: size WIDTHxHEIGHT (e.g., 1280x720)")
            return
        settings.screen_width, settings.screen_height = size
        self.console.print(f"Screen size set to {settings.screen_size}")

    def _command_split(self, args: str) -> None:
        try:
            commands = [shlex.split(part) for part in shlex.split(args)]
        except ValueError as exc:
            self._error(f"split: {exc}")
            return
        if not commands:
            self.console.print('Usage: split "command1" "command2" ...', markup=False)
            return
        self.console.print(f"Running {len(commands)} commands in split mode")
        try:
            outcomes = self.session.run_split(commands)
        except EmptyCommandError as exc:
            self._error(f"split: {exc}")
            return
        for outcome in outcomes:
            if outcome.status is OutcomeStatus.FAILED:
                self._error(f"{outcome.tag}{outcome.describe()}")

    def _command_fontsize(self, args: str) -> None:
        settings = self.session.settings
        if not args:
            self.console.print(f"Current font size: {settings.font_size}")
            return
        try:
            settings.font_size = int(args)
        except (ValueError, ValidationError):
            self.console.print("Usage: fontsize SIZE (e.g., 24)")
            return
        self.console.print(f"Font size set to {settings.font_size}")

    def _command_save(self, args: str) -> None:
        path = save_config(self.session.settings, Path(args) if args else DEFAULT_SAVE_PATH)
        self.console.print(f"Config saved to {path}", markup=False)

    def _command_load(self, args: str) -> None:
        path = Path(args) if args else DEFAULT_SAVE_PATH
        self.session.settings = read_settings(path)
        self.console.print(f"Config loaded from {path}", markup=False)

    # ------------------------------------------------------------------
    # execution helpers
    # ------------------------------------------------------------------
    def _run_command(self, line: str) -> Optional[CommandOutcome]:
        try:
            argv: List[str] = shlex.split(line)
        except ValueError as exc:
            self._error(f"Command error: {exc}")
            return None
        outcome = self.session.run_one(argv)
        if not outcome.succeeded:
            self._error(f"Command error: {outcome.describe()}")
        return outcome

    def _read_answer(self, message: str) -> str:
        if self._ask is not None:
            return self._ask(message)
        if self._prompt is not None:
            return self._prompt.prompt(message)
        return input(message)

    def _error(self, message: str) -> None:
        self.console.print(f"[bold red]Error[/] {escape(message)}", highlight=False)


__all__ = ["ShellCastRepl"]
