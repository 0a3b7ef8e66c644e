from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

# Log message model, logger level handling and concrete sinks.
from bundle_runtime.observability.logging import LogMessage, RuntimeLogger
from bundle_runtime.observability.sinks import FanoutLogSink, JsonlLogSink, TextLogSink


def test_log_message_validates_level_and_text() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="trace", message="x")
    with pytest.raises(TypeError):
        LogMessage(level="info", message=b"bytes")  # type: ignore[arg-type]


def test_logger_drops_debug_unless_enabled(list_sink) -> None:
    RuntimeLogger(list_sink).debug("hidden")
    assert list_sink.messages == []

    logger = RuntimeLogger(list_sink, debug=True)
    logger.debug("shown", step=1)
    assert list_sink.lines("debug") == ["shown"]
    assert logger.debug_enabled


def test_text_sink_splits_streams() -> None:
    out, err = io.StringIO(), io.StringIO()
    logger = RuntimeLogger(TextLogSink(out=out, err=err))

    logger.info("executing install action from app (installation: demo)")
    logger.warning("mixin wrote to stderr")
    logger.error("mixin execution failed: exec: boom")

    assert out.getvalue() == "executing install action from app (installation: demo)\n"
    assert err.getvalue() == "mixin wrote to stderr\nmixin execution failed: exec: boom\n"


def test_text_sink_defaults_to_process_streams(capsys: pytest.CaptureFixture[str]) -> None:
    sink = TextLogSink()
    sink.emit(LogMessage(level="info", message="to stdout"))
    sink.emit(LogMessage(level="error", message="to stderr"))
    captured = capsys.readouterr()
    assert captured.out == "to stdout\n"
    assert captured.err == "to stderr\n"


def test_jsonl_sink_writes_one_object_per_line(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "runtime.jsonl"
    sink = JsonlLogSink(path)
    RuntimeLogger(sink).info("Collecting bundle outputs...", outputs=2)
    sink.close()
    sink.close()

    (line,) = path.read_text(encoding="utf-8").splitlines()
    record = json.loads(line)
    assert record["level"] == "info"
    assert record["message"] == "Collecting bundle outputs..."
    assert record["fields"] == {"outputs": 2}
    assert record["timestamp"].endswith("Z")


def test_fanout_sink_delivers_to_all(list_sink, tmp_path: Path) -> None:
    out = io.StringIO()
    fanout = FanoutLogSink(list_sink, TextLogSink(out=out))
    fanout.emit(LogMessage(level="info", message="hello"))
    fanout.close()
    assert list_sink.lines() == ["hello"]
    assert list_sink.closed
    assert out.getvalue() == "hello\n"
