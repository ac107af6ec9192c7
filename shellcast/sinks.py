"""Fan-out of formatted lines to the console, capture and recording files."""
from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from .state import SessionState

logger = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"


def append_to_file(path: Path, text: str) -> None:
    """Open, append and close; no handle outlives the call."""
    with path.open("a", encoding="utf-8") as fh:
        fh.write(text)


class SinkSet:
    """Writes every published line to the sinks active at that instant."""

    def __init__(self, state: SessionState, console: Console, error_console: Console) -> None:
        self._state = state
        self._console = console
        self._error_console = error_console

    def publish(self, line: str, origin: str = STDOUT) -> None:
        console = self._error_console if origin == STDERR else self._console
        try:
            console.out(line, highlight=False)
        except OSError as exc:
            logger.error("Console write failed: %s", exc)

        with self._state.recording_lock:
            recording = self._state.recording
            if recording is not None:
                self._write(recording.path, line)

        # The buffer dump on stream start holds the same lock, so every line
        # reaches either the dump or the capture file.
        with self._state.streaming_lock:
            streaming = self._state.streaming
            if streaming is not None:
                self._write(streaming.capture_path, line)
            self._state.append(line)

    def _write(self, path: Path, line: str) -> None:
        try:
            append_to_file(path, line + "\n")
        except OSError as exc:
            logger.error("Failed to append to %s: %s", path, exc)


__all__ = ["STDERR", "STDOUT", "SinkSet", "append_to_file"]
