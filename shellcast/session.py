"""Session controller: runs commands and owns the streaming/recording lifecycles."""
from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

from rich.console import Console

from .config import ShellCastSettings
from .encoder import build_encoder_command
from .errors import (
    AlreadyRecordingError,
    AlreadyStreamingError,
    EmptyCommandError,
    NotRecordingError,
    NotStreamingError,
    RecordingError,
    StreamingError,
)
from .runner import CommandOutcome, OutcomeStatus, ProcessRunner
from .sinks import SinkSet, append_to_file
from .state import RecordingHandle, SessionState, StreamingHandle

logger = logging.getLogger(__name__)

RULE = "-" * 80
RECORDING_STEM_FORMAT = "shellcast_%Y-%m-%d_%H-%M-%S"
ENCODER_STOP_TIMEOUT = 5.0


def format_duration(delta: timedelta) -> str:
    return str(timedelta(seconds=round(delta.total_seconds())))


class ShellCastSession:
    """Shared context for one shellcast invocation.

    Commands run through :class:`ProcessRunner` instances that publish into a
    single :class:`SinkSet`; streaming and recording can be toggled at any
    time, from any thread, while commands are running.
    """

    def __init__(
        self,
        settings: ShellCastSettings,
        *,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
        command_line: Optional[Sequence[str]] = None,
    ) -> None:
        self.settings = settings
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)
        self.command_line = list(command_line) if command_line is not None else list(sys.argv)
        self.state = SessionState()
        self.sinks = SinkSet(self.state, self.console, self.error_console)
        self._children: Set[subprocess.Popen] = set()
        self._children_lock = threading.Lock()
        self._runner = ProcessRunner(
            self.sinks,
            lambda: self.settings.timestamp_policy,
            on_spawn=self._track_child,
            on_exit=self._untrack_child,
        )

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------
    @property
    def streaming(self) -> bool:
        return self.state.streaming_active

    @property
    def recording(self) -> bool:
        return self.state.recording_active

    @property
    def buffer(self) -> str:
        return self.state.buffer_text()

    @property
    def recording_path(self) -> Optional[Path]:
        handle = self.state.recording
        return handle.path if handle is not None else None

    @property
    def capture_path(self) -> Optional[Path]:
        handle = self.state.streaming
        return handle.capture_path if handle is not None else None

    def status(self) -> Dict[str, Any]:
        streaming = self.state.streaming
        recording = self.state.recording
        return {
            "streaming": streaming is not None,
            "destination": streaming.destination if streaming else None,
            "capture_file": str(streaming.capture_path) if streaming else None,
            "recording": recording is not None,
            "recording_file": str(recording.path) if recording else None,
            "buffered_lines": len(self.state.lines()),
        }

    # ------------------------------------------------------------------
    # command execution
    # ------------------------------------------------------------------
    def run_one(self, argv: Sequence[str]) -> CommandOutcome:
        return self._runner.run(argv)

    def run_split(self, commands: Sequence[Sequence[str]]) -> List[CommandOutcome]:
        """Run every command concurrently, tagged ``[CMD<n>] ``; outcomes keep input order."""
        argv_list = [list(argv) for argv in commands]
        if not argv_list:
            raise EmptyCommandError("no commands provided for split screen")
        for index, argv in enumerate(argv_list, start=1):
            if not argv:
                raise EmptyCommandError(f"command {index} is empty")

        outcomes: List[Optional[CommandOutcome]] = [None] * len(argv_list)

        def work(index: int, argv: List[str]) -> None:
            tag = f"[CMD{index + 1}] "
            try:
                outcome = self._runner.run(argv, tag)
            except Exception as exc:
                logger.exception("Runner for %r crashed", argv)
                outcome = CommandOutcome(argv=argv, status=OutcomeStatus.SPAWN_FAILED, tag=tag, error=str(exc))
            outcomes[index] = outcome
            if outcome.status is OutcomeStatus.SPAWN_FAILED:
                self.error_console.print(f"{tag}{outcome.describe()}", markup=False, highlight=False)
            else:
                self.console.print(f"{tag}Command completed", markup=False, highlight=False)

        workers = [
            threading.Thread(target=work, args=(index, argv), name=f"split-{index + 1}", daemon=True)
            for index, argv in enumerate(argv_list)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        return [
            outcome
            if outcome is not None
            else CommandOutcome(
                argv=argv,
                status=OutcomeStatus.SPAWN_FAILED,
                tag=f"[CMD{index + 1}] ",
                error="runner exited without a result",
            )
            for index, (outcome, argv) in enumerate(zip(outcomes, argv_list))
        ]

    # ------------------------------------------------------------------
    # streaming
    # ------------------------------------------------------------------
    def start_streaming(self) -> StreamingHandle:
        with self.state.streaming_lock:
            if self.state.streaming is not None:
                raise AlreadyStreamingError()
            if not self.settings.rtmp_url:
                raise StreamingError("no RTMP URL configured")

            owns_capture = self.settings.output_file is None
            if owns_capture:
                try:
                    fd, name = tempfile.mkstemp(prefix="shellcast_", suffix=".txt")
                    os.close(fd)
                except OSError as exc:
                    raise StreamingError(f"error creating temp file: {exc}") from exc
                capture_path = Path(name)
            else:
                capture_path = self.settings.output_file

            try:
                capture_path.write_text(self.state.buffer_text(), encoding="utf-8")
            except OSError as exc:
                self._discard_capture(capture_path, owns_capture)
                raise StreamingError(f"error writing to output file: {exc}") from exc

            command = build_encoder_command(self.settings, capture_path)
            logger.debug("Starting encoder: %s", command)
            try:
                process = subprocess.Popen(command, stdin=subprocess.DEVNULL)
            except (OSError, ValueError, subprocess.SubprocessError) as exc:
                self._discard_capture(capture_path, owns_capture)
                raise StreamingError(f"error starting encoder {command[0]!r}: {exc}") from exc

            handle = StreamingHandle(
                capture_path=capture_path,
                owns_capture=owns_capture,
                process=process,
                destination=self.settings.rtmp_url,
            )
            self.state.streaming = handle

        logger.info("Encoder pid %s streaming %s", process.pid, capture_path)
        self.console.print(f"Streaming started to {handle.destination}", markup=False, highlight=False)
        return handle

    def stop_streaming(self) -> None:
        with self.state.streaming_lock:
            handle = self.state.streaming
            if handle is None or handle.closing:
                raise NotStreamingError()
            handle.closing = True

            try:
                handle.process.kill()
                handle.process.wait(timeout=ENCODER_STOP_TIMEOUT)
            except (OSError, subprocess.TimeoutExpired) as exc:
                logger.warning("Encoder did not stop cleanly: %s", exc)
            finally:
                self.state.streaming = None
            self._discard_capture(handle.capture_path, handle.owns_capture)

        self.console.print("Streaming stopped", markup=False, highlight=False)

    @staticmethod
    def _discard_capture(path: Path, owned: bool) -> None:
        if not owned:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove capture file %s: %s", path, exc)

    # ------------------------------------------------------------------
    # recording
    # ------------------------------------------------------------------
    def start_recording(self) -> Path:
        with self.state.recording_lock:
            if self.state.recording is not None:
                raise AlreadyRecordingError()

            started_at = datetime.now()
            header = "".join(
                [
                    f"ShellCast Recording - Started at {started_at.strftime(self.settings.timestamp_format)}\n",
                    f"Command: {' '.join(self.command_line)}\n",
                    f"{RULE}\n\n",
                ]
            )
            try:
                path = self._next_recording_path(started_at)
                path.write_text(header, encoding="utf-8")
            except OSError as exc:
                raise RecordingError(f"error writing to record file: {exc}") from exc

            self.state.recording = RecordingHandle(path=path, started_at=started_at)

        self.console.print(f"Recording started: {path}", markup=False, highlight=False)
        return path

    def stop_recording(self) -> Path:
        with self.state.recording_lock:
            handle = self.state.recording
            if handle is None or handle.closing:
                raise NotRecordingError()
            handle.closing = True

            ended_at = datetime.now()
            footer = "".join(
                [
                    f"\n\n{RULE}\n",
                    f"Recording ended at {ended_at.strftime(self.settings.timestamp_format)}\n",
                    f"Duration: {format_duration(ended_at - handle.started_at)}\n",
                ]
            )
            try:
                append_to_file(handle.path, footer)
            except OSError as exc:
                raise RecordingError(f"error writing to record file: {exc}") from exc
            finally:
                self.state.recording = None

        self.console.print(f"Recording stopped: {handle.path}", markup=False, highlight=False)
        return handle.path

    def _next_recording_path(self, started_at: datetime) -> Path:
        directory = self.settings.record_path
        directory.mkdir(parents=True, exist_ok=True)
        stem = started_at.strftime(RECORDING_STEM_FORMAT)
        path = directory / f"{stem}.txt"
        suffix = 1
        while path.exists():
            suffix += 1
            path = directory / f"{stem}-{suffix}.txt"
        return path

    # ------------------------------------------------------------------
    # shutdown
    # ------------------------------------------------------------------
    def cleanup(self) -> None:
        """Stop whatever is active. Safe to call repeatedly and from a signal handler."""
        if self.state.streaming_active:
            try:
                self.stop_streaming()
            except NotStreamingError:
                logger.debug("Streaming stop already in progress")
            except Exception as exc:
                logger.warning("Failed to stop streaming during cleanup: %s", exc)
        if self.state.recording_active:
            try:
                self.stop_recording()
            except NotRecordingError:
                logger.debug("Recording stop already in progress")
            except Exception as exc:
                logger.warning("Failed to stop recording during cleanup: %s", exc)

    def terminate_children(self) -> None:
        with self._children_lock:
            children = list(self._children)
        for process in children:
            try:
                process.kill()
            except OSError as exc:
                logger.warning("Could not kill pid %s: %s", process.pid, exc)

    def _track_child(self, process: subprocess.Popen) -> None:
        with self._children_lock:
            self._children.add(process)

    def _untrack_child(self, process: subprocess.Popen) -> None:
        with self._children_lock:
            self._children.discard(process)

    def __enter__(self) -> "ShellCastSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


__all__ = ["ShellCastSession", "format_duration"]
