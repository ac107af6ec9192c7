"""Entry point for the shellcast command line."""
from __future__ import annotations

import logging
import shlex
import signal
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ShellCastSettings, load_config, parse_screen_size
from .errors import ConfigError, ShellCastError
from .logging_config import setup_logging
from .runner import CommandOutcome, OutcomeStatus
from .session import ShellCastSession
from .themes import list_themes
from .tui.repl import ShellCastRepl

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, rich_markup_mode="rich")

STREAM_WARMUP_SECONDS = 2.0

EXAMPLES = """
Examples:
  shellcast --interactive
  shellcast --rtmp rtmp://server/app ls -la
  shellcast --theme hacker --timestamp --record top -b -n 1
  shellcast --split "ls -la" "uptime"
"""


def _print_themes(console: Console) -> None:
    table = Table(title="Available themes")
    table.add_column("name")
    table.add_column("font")
    table.add_column("background")
    for theme in list_themes():
        table.add_row(theme.key, theme.font_color, theme.background_color)
    console.print(table)


def _load_settings(config_path: Optional[Path]) -> ShellCastSettings:
    try:
        result = load_config(config_path)
    except ConfigError as exc:
        logger.warning("Error loading config, using defaults: %s", exc)
        return ShellCastSettings()
    if result.source is not None:
        logger.info("Loaded configuration from %s", result.source)
    return result.settings


def _exit_code(outcome: CommandOutcome) -> int:
    if outcome.status is OutcomeStatus.SPAWN_FAILED:
        return 127
    if outcome.exit_code is None:
        return 1
    if outcome.exit_code < 0:
        return 128 - outcome.exit_code
    return outcome.exit_code


@contextmanager
def _termination_handlers(session: ShellCastSession, console: Console) -> Iterator[None]:
    """Run cleanup once on SIGINT/SIGTERM, then exit."""
    fired = False

    def handle(signum: int, frame: object) -> None:
        nonlocal fired
        if fired:
            return
        fired = True
        console.print("\nReceived termination signal. Cleaning up...")
        session.cleanup()
        session.terminate_children()
        raise typer.Exit(code=128 + signum)

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handle)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _run_single(session: ShellCastSession, command: List[str], linger: float) -> int:
    argv = command if len(command) > 1 else shlex.split(command[0])
    if session.settings.rtmp_url:
        session.start_streaming()
        time.sleep(STREAM_WARMUP_SECONDS)

    outcome = session.run_one(argv)
    if not outcome.succeeded:
        session.error_console.print(f"[bold red]Command error:[/] {escape(outcome.describe())}")

    if session.streaming:
        session.console.print(f"Command completed. Streaming for {linger:g} more seconds...")
        time.sleep(linger)
        session.stop_streaming()
    return _exit_code(outcome)


def _run_split(session: ShellCastSession, command: List[str]) -> int:
    outcomes = session.run_split([shlex.split(entry) for entry in command])
    return 0 if all(outcome.succeeded for outcome in outcomes) else 1


@app.command(context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True})
def main(
    ctx: typer.Context,
    command: Optional[List[str]] = typer.Argument(None, help="Command to run (several commands with --split)"),
    rtmp: Optional[str] = typer.Option(None, "--rtmp", help="RTMP URL to stream to"),
    ffmpeg: Optional[str] = typer.Option(None, "--ffmpeg", help="Path to FFmpeg executable"),
    font_size: Optional[int] = typer.Option(None, "--font-size", help="Font size for streaming"),
    font_color: Optional[str] = typer.Option(None, "--font-color", help="Font color for streaming"),
    bg_color: Optional[str] = typer.Option(None, "--bg-color", help="Background color for streaming"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Run in interactive mode"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    timestamp: Optional[bool] = typer.Option(None, "--timestamp/--no-timestamp", help="Show timestamps in output"),
    timestamp_format: Optional[str] = typer.Option(None, "--timestamp-format", help="strftime format for timestamps"),
    screen_size: Optional[str] = typer.Option(None, "--screen-size", help="Screen size for streaming (WIDTHxHEIGHT)"),
    record: bool = typer.Option(False, "--record", help="Record session to file"),
    record_path: Optional[Path] = typer.Option(None, "--record-path", help="Directory to save recordings"),
    theme: Optional[str] = typer.Option(None, "--theme", help="Theme preset to use"),
    split: bool = typer.Option(False, "--split", help="Run commands in split screen mode"),
    show_themes: bool = typer.Option(False, "--list-themes", help="List available theme presets"),
    linger: float = typer.Option(5.0, "--linger", min=0, help="Seconds to keep streaming after the command exits"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING...)"),
) -> None:
    """Run commands while streaming and/or recording their output."""
    setup_logging(log_level)
    console = Console()

    if show_themes:
        _print_themes(console)
        return

    settings = _load_settings(config_path)
    try:
        if rtmp:
            settings.rtmp_url = rtmp
        if ffmpeg:
            settings.ffmpeg_path = ffmpeg
        if font_size is not None:
            settings.font_size = font_size
        if font_color is not None:
            settings.font_color = font_color
        if bg_color is not None:
            settings.background_color = bg_color
        if timestamp is not None:
            settings.show_timestamp = timestamp
        if timestamp_format is not None:
            settings.timestamp_format = timestamp_format
        if screen_size is not None:
            settings.screen_width, settings.screen_height = parse_screen_size(screen_size)
        if record_path is not None:
            settings.record_path = record_path
        if theme is not None:
            settings.apply_theme(theme)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid option:[/] {escape(str(exc))}")
        raise typer.Exit(code=2)
    except ShellCastError as exc:
        logger.warning("%s", exc)

    commands = list(command or [])
    if split and not commands:
        commands = list(settings.split_commands)

    session = ShellCastSession(settings, console=console, command_line=sys.argv)
    exit_code = 0
    with _termination_handlers(session, console):
        try:
            if record or settings.record_session:
                try:
                    session.start_recording()
                except ShellCastError as exc:
                    logger.warning("Failed to start recording: %s", exc)

            if interactive:
                ShellCastRepl(session, console=console).run()
            elif split and commands:
                exit_code = _run_split(session, commands)
            elif commands:
                exit_code = _run_single(session, commands, linger)
            else:
                console.print(ctx.get_help(), markup=False)
                console.print(EXAMPLES, markup=False)
        except (ShellCastError, ValueError) as exc:
            console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            exit_code = 1
        finally:
            session.cleanup()

    if exit_code:
        raise typer.Exit(code=exit_code)


def entrypoint() -> None:
    """Typer entrypoint for `shellcast`."""
    app()


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
