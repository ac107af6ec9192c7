"""Shared mutable state for one shellcast session."""
from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass
class StreamingHandle:
    """Everything owned by an active streaming pass."""

    capture_path: Path
    owns_capture: bool
    process: subprocess.Popen
    destination: str
    started_at: datetime = field(default_factory=datetime.now)
    closing: bool = False


@dataclass
class RecordingHandle:
    path: Path
    started_at: datetime
    closing: bool = False


class SessionState:
    """Buffer plus streaming/recording handles shared by all runners.

    A subsystem is active exactly when its handle is set, so the flag and
    the handle can never disagree. Sinks write under the subsystem lock and
    the buffer is appended under ``streaming_lock``; a stop clears its handle
    only after the encoder is gone or the footer is written.
    """

    def __init__(self) -> None:
        self._buffer: List[str] = []
        self.buffer_lock = threading.Lock()
        self.streaming_lock = threading.RLock()
        self.recording_lock = threading.RLock()
        self.streaming: Optional[StreamingHandle] = None
        self.recording: Optional[RecordingHandle] = None

    @property
    def streaming_active(self) -> bool:
        return self.streaming is not None

    @property
    def recording_active(self) -> bool:
        return self.recording is not None

    def append(self, line: str) -> None:
        with self.buffer_lock:
            self._buffer.append(line)

    def lines(self) -> List[str]:
        with self.buffer_lock:
            return list(self._buffer)

    def buffer_text(self) -> str:
        with self.buffer_lock:
            return "".join(f"{line}\n" for line in self._buffer)


__all__ = ["RecordingHandle", "SessionState", "StreamingHandle"]
