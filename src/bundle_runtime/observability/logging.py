from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from bundle_runtime.ports.log_sink import LogSink

LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True, slots=True)
class LogMessage:
    # Structured log payload; sinks decide how it is rendered.
    level: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"LogMessage level must be one of {LEVELS}, got {self.level!r}")
        if not isinstance(self.message, str):
            raise TypeError("LogMessage message must be a string")


class RuntimeLogger:
    # Engine-facing facade over a LogSink; debug messages are dropped unless enabled.
    def __init__(self, sink: LogSink, *, debug: bool = False) -> None:
        self._sink = sink
        self._debug = debug

    @property
    def debug_enabled(self) -> bool:
        return self._debug

    def debug(self, message: str, **fields: object) -> None:
        if self._debug:
            self._emit("debug", message, fields)

    def info(self, message: str, **fields: object) -> None:
        self._emit("info", message, fields)

    def warning(self, message: str, **fields: object) -> None:
        self._emit("warning", message, fields)

    def error(self, message: str, **fields: object) -> None:
        self._emit("error", message, fields)

    def close(self) -> None:
        self._sink.close()

    def _emit(self, level: str, message: str, fields: dict[str, object]) -> None:
        self._sink.emit(LogMessage(level=level, message=message, fields=dict(fields)))
