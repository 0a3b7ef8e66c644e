from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bundle_runtime.domain.errors import OutputReadError
from bundle_runtime.ports.output_channel import OutputChannel

# Values are raw bytes on disk; surrogateescape keeps non-UTF-8 payloads byte-identical.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class FileOutputChannel(OutputChannel):
    # Directory channel: one file per produced value, filename = output name.
    path: Path

    def ensure(self) -> None:
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputReadError(
                exc, resource=str(self.path), stage="could not create outputs directory"
            ) from exc

    def read_and_clear(self) -> dict[str, str]:
        # One unreadable file fails the whole batch; values already read are discarded.
        try:
            entries = sorted(self.path.iterdir())
        except OSError as exc:
            raise OutputReadError(exc, resource=str(self.path)) from exc

        outputs: dict[str, str] = {}
        for entry in entries:
            if entry.is_dir():
                continue
            try:
                contents = entry.read_bytes()
            except OSError as exc:
                raise OutputReadError(exc, resource=str(entry)) from exc
            outputs[entry.name] = contents.decode(ENCODING, errors=ENCODING_ERRORS)
            try:
                entry.unlink()
            except OSError as exc:
                raise OutputReadError(exc, resource=str(entry)) from exc
        return outputs
