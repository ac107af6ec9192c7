"""자식 프로세스 하나를 실행하고 두 출력 스트림을 동시에 배출하는 러너."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import IO, Callable, List, Optional, Sequence

from .errors import EmptyCommandError
from .formatter import TimestampPolicy, format_line
from .sinks import STDERR, STDOUT, SinkSet

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SPAWN_FAILED = "spawn_failed"


@dataclass(slots=True)
class CommandOutcome:
    """단일 명령 실행 결과."""

    argv: List[str]
    status: OutcomeStatus
    tag: Optional[str] = None
    exit_code: Optional[int] = None
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def describe(self) -> str:
        if self.status is OutcomeStatus.SPAWN_FAILED:
            return self.error or "failed to start"
        if self.status is OutcomeStatus.FAILED:
            return f"exit status {self.exit_code}"
        return "ok"


ProcessHook = Callable[[subprocess.Popen], None]


def _decode(chunk: bytes) -> str:
    text = chunk.decode("utf-8", errors="replace")
    if text.endswith("\n"):
        text = text[:-1]
    if text.endswith("\r"):
        text = text[:-1]
    return text


class ProcessRunner:
    """spawn → 두 스트림 동시 배출 → 종료 대기 순서로 명령을 실행한다."""

    def __init__(
        self,
        sinks: SinkSet,
        policy: Callable[[], TimestampPolicy],
        *,
        on_spawn: Optional[ProcessHook] = None,
        on_exit: Optional[ProcessHook] = None,
    ) -> None:
        self._sinks = sinks
        self._policy = policy
        self._on_spawn = on_spawn
        self._on_exit = on_exit

    def run(self, argv: Sequence[str], tag: Optional[str] = None) -> CommandOutcome:
        argv = list(argv)
        if not argv:
            raise EmptyCommandError("empty command")

        started = time.monotonic()
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            logger.debug("Spawn failed for %r: %s", argv, exc)
            return CommandOutcome(
                argv=argv,
                status=OutcomeStatus.SPAWN_FAILED,
                tag=tag,
                error=f"error starting command {argv[0]!r}: {exc}",
                duration=time.monotonic() - started,
            )

        if self._on_spawn is not None:
            self._on_spawn(process)
        try:
            # 두 스트림은 서로를 막지 않도록 별도 스레드에서 읽는다.
            drains = [
                threading.Thread(
                    target=self._drain,
                    args=(process.stdout, STDOUT, tag),
                    name=f"drain-stdout-{process.pid}",
                    daemon=True,
                ),
                threading.Thread(
                    target=self._drain,
                    args=(process.stderr, STDERR, tag),
                    name=f"drain-stderr-{process.pid}",
                    daemon=True,
                ),
            ]
            for drain in drains:
                drain.start()
            for drain in drains:
                drain.join()
            exit_code = process.wait()
        finally:
            if self._on_exit is not None:
                self._on_exit(process)

        logger.debug("Command %r exited with %s", argv, exit_code)
        return CommandOutcome(
            argv=argv,
            status=OutcomeStatus.SUCCESS if exit_code == 0 else OutcomeStatus.FAILED,
            tag=tag,
            exit_code=exit_code,
            duration=time.monotonic() - started,
        )

    def _drain(self, stream: IO[bytes], origin: str, tag: Optional[str]) -> None:
        # readline()은 줄 길이 제한이 없으므로 긴 줄도 잘리지 않는다.
        try:
            for chunk in iter(stream.readline, b""):
                self._sinks.publish(format_line(_decode(chunk), tag, self._policy()), origin)
        finally:
            stream.close()


__all__ = ["CommandOutcome", "OutcomeStatus", "ProcessRunner"]
