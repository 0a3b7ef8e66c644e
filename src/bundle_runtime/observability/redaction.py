from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from bundle_runtime.observability.logging import LogMessage
from bundle_runtime.ports.log_sink import LogSink

MASK = "*******"


class SensitiveValueMask:
    # Explicit redaction set handed to the log pipeline; the step executor refreshes it per step.
    def __init__(self, values: Iterable[str] = ()) -> None:
        self._values: tuple[str, ...] = ()
        self.replace(values)

    @property
    def values(self) -> tuple[str, ...]:
        return self._values

    def replace(self, values: Iterable[str]) -> None:
        # Longest first so a value that contains another one is masked whole.
        unique = {value for value in values if isinstance(value, str) and value}
        self._values = tuple(sorted(unique, key=lambda value: (-len(value), value)))

    def redact(self, text: str) -> str:
        for value in self._values:
            if value in text:
                text = text.replace(value, MASK)
        return text


class RedactingLogSink:
    # Wraps another sink and masks sensitive values in the message and string fields.
    def __init__(self, inner: LogSink, mask: SensitiveValueMask) -> None:
        self._inner = inner
        self._mask = mask

    def emit(self, message: LogMessage) -> None:
        fields = {
            key: self._mask.redact(value) if isinstance(value, str) else value
            for key, value in message.fields.items()
        }
        self._inner.emit(replace(message, message=self._mask.redact(message.message), fields=fields))

    def close(self) -> None:
        self._inner.close()
