"""Exception types raised by the shellcast core."""

from __future__ import annotations


class ShellCastError(RuntimeError):
    """Base class for errors reported to the operator."""


class ConfigError(ShellCastError):
    """설정 파일을 읽거나 쓸 수 없을 때 사용."""


class UnknownThemeError(ShellCastError):
    """Raised when a theme preset name does not exist."""


class EmptyCommandError(ValueError):
    """An empty argument vector was handed to a runner."""


class SessionStateError(ShellCastError):
    """A start/stop call conflicted with the current subsystem state."""


class AlreadyStreamingError(SessionStateError):
    def __init__(self) -> None:
        super().__init__("already streaming")


class NotStreamingError(SessionStateError):
    def __init__(self) -> None:
        super().__init__("not streaming")


class AlreadyRecordingError(SessionStateError):
    def __init__(self) -> None:
        super().__init__("already recording")


class NotRecordingError(SessionStateError):
    def __init__(self) -> None:
        super().__init__("not recording")


class StreamingError(ShellCastError):
    """The capture file or encoder process could not be set up."""


class RecordingError(ShellCastError):
    """The recording file could not be written."""


__all__ = [
    "AlreadyRecordingError",
    "AlreadyStreamingError",
    "ConfigError",
    "EmptyCommandError",
    "NotRecordingError",
    "NotStreamingError",
    "RecordingError",
    "SessionStateError",
    "ShellCastError",
    "StreamingError",
    "UnknownThemeError",
]
