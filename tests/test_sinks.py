import logging
import threading
from datetime import datetime
from pathlib import Path

from shellcast.sinks import STDERR, STDOUT, SinkSet
from shellcast.state import RecordingHandle, SessionState, StreamingHandle

from .helpers import console_text, make_console


def _sinks():
    state = SessionState()
    out, err = make_console(), make_console()
    return state, SinkSet(state, out, err), out, err


def test_publish_keeps_stream_origin_on_console():
    state, sinks, out, err = _sinks()

    sinks.publish("to stdout", STDOUT)
    sinks.publish("to stderr", STDERR)

    assert console_text(out) == "to stdout\n"
    assert console_text(err) == "to stderr\n"
    assert state.buffer_text() == "to stdout\nto stderr\n"


def test_publish_writes_files_only_while_active(tmp_path: Path):
    state, sinks, _, _ = _sinks()
    capture = tmp_path / "capture.txt"
    record = tmp_path / "record.txt"

    sinks.publish("before")
    state.streaming = StreamingHandle(capture_path=capture, owns_capture=False, process=None, destination="rtmp://x")
    sinks.publish("streamed")
    state.recording = RecordingHandle(path=record, started_at=datetime.now())
    sinks.publish("both")
    state.streaming = None
    sinks.publish("recorded")

    assert capture.read_text() == "streamed\nboth\n"
    assert record.read_text() == "both\nrecorded\n"
    assert state.lines() == ["before", "streamed", "both", "recorded"]


def test_file_failure_is_logged_and_publication_continues(tmp_path: Path, caplog):
    state, sinks, out, _ = _sinks()
    state.recording = RecordingHandle(path=tmp_path, started_at=datetime.now())
    capture = tmp_path / "capture.txt"
    state.streaming = StreamingHandle(capture_path=capture, owns_capture=False, process=None, destination="rtmp://x")

    with caplog.at_level(logging.ERROR, logger="shellcast.sinks"):
        sinks.publish("still delivered")

    assert "Failed to append" in caplog.text
    assert capture.read_text() == "still delivered\n"
    assert console_text(out) == "still delivered\n"
    assert state.lines() == ["still delivered"]


def test_concurrent_publishers_do_not_lose_or_corrupt_lines(tmp_path: Path):
    state, sinks, _, _ = _sinks()
    record = tmp_path / "record.txt"
    state.recording = RecordingHandle(path=record, started_at=datetime.now())

    def publish_many(worker: int) -> None:
        for index in range(200):
            sinks.publish(f"worker-{worker}-line-{index}")

    threads = [threading.Thread(target=publish_many, args=(worker,)) for worker in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    expected = {f"worker-{w}-line-{i}" for w in range(8) for i in range(200)}
    assert len(state.lines()) == 1600
    assert set(state.lines()) == expected
    assert sorted(record.read_text().splitlines()) == sorted(expected)

    # Per-publisher order survives the interleaving.
    worker_zero = [line for line in state.lines() if line.startswith("worker-0-")]
    assert worker_zero == [f"worker-0-line-{i}" for i in range(200)]


def test_publish_waits_for_a_stream_start_in_progress(tmp_path: Path):
    state, sinks, _, _ = _sinks()
    capture = tmp_path / "capture.txt"
    publisher = threading.Thread(target=sinks.publish, args=("during start",))

    with state.streaming_lock:
        capture.write_text(state.buffer_text())
        publisher.start()
        publisher.join(timeout=0.2)
        assert publisher.is_alive()
        assert state.lines() == []
        state.streaming = StreamingHandle(capture_path=capture, owns_capture=False, process=None, destination="rtmp://x")
    publisher.join(timeout=5)

    assert capture.read_text() == "during start\n"
    assert state.lines() == ["during start"]
