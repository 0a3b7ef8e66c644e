from __future__ import annotations

from dataclasses import dataclass

from bundle_runtime.domain.errors import BundleRuntimeError, UnboundOutputErrors


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    # Result of one action: the first step failure decides success, collection warnings never do.
    action: str
    steps_executed: int
    error: BundleRuntimeError | None = None
    unbound_error: UnboundOutputErrors | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
