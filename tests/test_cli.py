import os
import shlex
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shellcast import cli, config


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_CONFIG_FILES", [])


def test_cli_list_themes():
    result = CliRunner().invoke(cli.app, ["--list-themes"])

    assert result.exit_code == 0
    assert "hacker" in result.stdout
    assert "solarized" in result.stdout


def test_cli_runs_single_command():
    result = CliRunner().invoke(cli.app, [sys.executable, "-c", "print('hello from child')"])

    assert result.exit_code == 0, result.output
    assert "hello from child" in result.stdout


def test_cli_propagates_exit_status():
    result = CliRunner().invoke(cli.app, [sys.executable, "-c", "raise SystemExit(3)"])
    assert result.exit_code == 3


def test_cli_split_mode():
    exe = shlex.quote(sys.executable)
    result = CliRunner().invoke(
        cli.app,
        ["--split", f"{exe} -c \"print('left')\"", f"{exe} -c \"print('right')\""],
    )

    assert result.exit_code == 0, result.output
    assert "[CMD1] left" in result.stdout
    assert "[CMD2] right" in result.stdout


def test_cli_records_session(tmp_path: Path):
    record_dir = tmp_path / "rec"
    result = CliRunner().invoke(
        cli.app,
        ["--record", "--record-path", str(record_dir), "--timestamp", sys.executable, "-c", "print('kept')"],
    )

    assert result.exit_code == 0, result.output
    [recording] = list(record_dir.iterdir())
    text = recording.read_text()
    assert "ShellCast Recording - Started at" in text
    assert "] kept" in text
    assert "Recording ended at" in text


def test_cli_rejects_bad_timestamp_format():
    result = CliRunner().invoke(cli.app, ["--timestamp-format", "", "true"])
    assert result.exit_code == 2


def test_cli_without_command_prints_examples():
    result = CliRunner().invoke(cli.app, [])

    assert result.exit_code == 0
    assert "Examples:" in result.stdout


@pytest.mark.skipif(not hasattr(signal, "SIGTERM") or sys.platform == "win32", reason="POSIX signals only")
def test_cli_sigterm_cleans_up_once_and_exits(tmp_path: Path):
    record_dir = tmp_path / "recordings"
    env = dict(os.environ, HOME=str(tmp_path), PYTHONPATH=str(Path(__file__).resolve().parents[1]))
    child = "import time; print('child ready', flush=True); time.sleep(60)"
    process = subprocess.Popen(
        [sys.executable, "-m", "shellcast.cli", "--record", "--record-path", str(record_dir), sys.executable, "-c", child],
        cwd=tmp_path,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    try:
        deadline = time.monotonic() + 20
        while not any("child ready" in path.read_text() for path in record_dir.glob("*.txt")):
            assert process.poll() is None, process.communicate()
            assert time.monotonic() < deadline, "child output never reached the recording"
            time.sleep(0.05)

        process.send_signal(signal.SIGTERM)
        process.communicate(timeout=20)
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()

    assert process.returncode == 128 + signal.SIGTERM
    (recording,) = record_dir.glob("*.txt")
    text = recording.read_text()
    assert text.count("Recording ended at") == 1
    assert text.splitlines()[-1].startswith("Duration:")
