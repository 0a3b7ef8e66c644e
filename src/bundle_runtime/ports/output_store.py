from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


# BundleOutputStore holds finalized bundle outputs keyed by declared name.
@runtime_checkable
class BundleOutputStore(Protocol):
    def ensure(self) -> None:
        """Create the store if it does not exist yet."""
        raise NotImplementedError("BundleOutputStore is a port; use a concrete adapter.")

    def path_for(self, name: str) -> Path:
        """Location of the named output inside the store."""
        raise NotImplementedError("BundleOutputStore is a port; use a concrete adapter.")

    def write(self, name: str, value: str) -> None:
        """Persist a produced value under the declared output name."""
        raise NotImplementedError("BundleOutputStore is a port; use a concrete adapter.")

    def copy_from(self, name: str, source: Path) -> None:
        """Copy a file verbatim into the store under the declared output name."""
        raise NotImplementedError("BundleOutputStore is a port; use a concrete adapter.")
