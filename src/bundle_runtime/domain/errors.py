from __future__ import annotations

from collections.abc import Iterable, Sequence


class BundleRuntimeError(Exception):
    # Base for every stage failure; message is "<stage>: <resource>: <cause>".
    stage = "runtime"

    def __init__(self, cause: object, *, resource: str | None = None, stage: str | None = None) -> None:
        self.cause = cause
        self.resource = resource
        if stage is not None:
            self.stage = stage
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.stage]
        if self.resource:
            parts.append(self.resource)
        parts.append(str(self.cause))
        return ": ".join(parts)


class ValidationError(BundleRuntimeError):
    stage = "manifest validation failed"


class PreparationError(BundleRuntimeError):
    stage = "unable to prepare runtime environment"


class ImageMetadataError(BundleRuntimeError):
    # Covers bundle.json and relocation mapping failures plus image resolution.
    stage = "unable to resolve bundle images"


class StepResolutionError(BundleRuntimeError):
    stage = "unable to resolve step"


class MixinExecutionError(BundleRuntimeError):
    stage = "mixin execution failed"


class OutputReadError(BundleRuntimeError):
    stage = "could not read step outputs"


class OutputBindError(BundleRuntimeError):
    stage = "unable to write output file"


class UnboundOutputCopyError(BundleRuntimeError):
    stage = "unable to copy output file"


class UnboundOutputErrors(BundleRuntimeError):
    # Flattened view over recoverable copy failures collected during one resolver pass.
    stage = "unable to collect bundle outputs"

    def __init__(self, errors: Iterable[UnboundOutputCopyError]) -> None:
        self.errors: tuple[UnboundOutputCopyError, ...] = tuple(errors)
        if not self.errors:
            raise ValueError("UnboundOutputErrors requires at least one error")
        super().__init__(_format_many(self.errors))


def _format_many(errors: Sequence[BaseException]) -> str:
    noun = "error" if len(errors) == 1 else "errors"
    lines = [f"{len(errors)} {noun} occurred:"]
    lines.extend(f"\t* {err}" for err in errors)
    return "\n".join(lines)
