from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class MixinRunError(RuntimeError):
    # Raised by invoker adapters; the step executor wraps it with the step context.
    pass


@dataclass(frozen=True, slots=True)
class CommandOptions:
    # `runtime` separates an execution-phase call from a build/lint call to the same mixin.
    command: str
    input: str = ""
    runtime: bool = True


# MixinInvoker runs one step through a named mixin and blocks until it finishes.
@runtime_checkable
class MixinInvoker(Protocol):
    def run(self, mixin: str, options: CommandOptions) -> Mapping[str, str] | None:
        """Execute the mixin; return structured outputs when the mixin reports them directly."""
        raise NotImplementedError("MixinInvoker is a port; use a concrete adapter.")
