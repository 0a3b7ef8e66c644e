from __future__ import annotations

from typing import Protocol, runtime_checkable


# OutputChannel is the hand-off area a running mixin writes its produced values into.
@runtime_checkable
class OutputChannel(Protocol):
    def ensure(self) -> None:
        """Create the channel if it does not exist yet."""
        raise NotImplementedError("OutputChannel is a port; use a concrete adapter.")

    def read_and_clear(self) -> dict[str, str]:
        """Return every produced value and remove it from the channel."""
        raise NotImplementedError("OutputChannel is a port; use a concrete adapter.")
