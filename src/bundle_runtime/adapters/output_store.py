from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from bundle_runtime.adapters.output_channel import ENCODING, ENCODING_ERRORS
from bundle_runtime.ports.output_store import BundleOutputStore


@dataclass(frozen=True)
class FileBundleOutputStore(BundleOutputStore):
    # Output directory adapter; callers wrap OSError with the stage they are in.
    path: Path

    def ensure(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        # Names come from the manifest; path separators would escape the store.
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise ValueError(f"invalid output name {name!r}")
        return self.path / name

    def write(self, name: str, value: str) -> None:
        self.path_for(name).write_bytes(value.encode(ENCODING, errors=ENCODING_ERRORS))

    def copy_from(self, name: str, source: Path) -> None:
        # Byte-for-byte copy; permission bits are not carried over.
        shutil.copyfile(source, self.path_for(name))
