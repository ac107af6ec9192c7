import stat
from pathlib import Path

import pytest

from shellcast.config import ShellCastSettings
from shellcast.session import ShellCastSession

from .helpers import make_console


@pytest.fixture
def settings(tmp_path: Path) -> ShellCastSettings:
    return ShellCastSettings(record_path=tmp_path / "recordings")


@pytest.fixture
def session(settings: ShellCastSettings):
    with ShellCastSession(
        settings,
        console=make_console(),
        error_console=make_console(),
        command_line=["shellcast", "--record", "demo"],
    ) as instance:
        yield instance


@pytest.fixture
def fake_encoder(tmp_path: Path) -> Path:
    """Stand-in for ffmpeg: ignores its arguments and stays alive until killed."""
    script = tmp_path / "fake-ffmpeg"
    script.write_text("#!/bin/sh\nexec sleep 60\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script
