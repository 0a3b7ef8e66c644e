from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TextIO

from bundle_runtime.observability.logging import LogMessage
from bundle_runtime.ports.log_sink import LogSink

_ERROR_LEVELS = {"warning", "error"}


class TextLogSink:
    # Human-readable sink: bare message lines, warnings and errors go to the error stream.
    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self._out = out
        self._err = err

    def emit(self, message: LogMessage) -> None:
        # Streams resolve lazily so pytest's capsys/capfd replacements are honoured.
        if message.level in _ERROR_LEVELS:
            stream = self._err if self._err is not None else sys.stderr
        else:
            stream = self._out if self._out is not None else sys.stdout
        stream.write(message.message + "\n")
        stream.flush()

    def close(self) -> None:
        # Process streams are not owned by the sink.
        return None


class JsonlLogSink:
    # File-backed structured sink: one JSON object per message.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        payload = json.dumps(_log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        self._file.write(payload + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class FanoutLogSink:
    # Delivers each message to several sinks in order.
    def __init__(self, *sinks: LogSink) -> None:
        self._sinks = sinks

    def emit(self, message: LogMessage) -> None:
        for sink in self._sinks:
            sink.emit(message)

    def close(self) -> None:
        for sink in self._sinks:
            sink.close()


def _log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }
