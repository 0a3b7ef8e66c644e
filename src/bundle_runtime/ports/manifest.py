from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from bundle_runtime.domain.bundle import BundleMetadata, RelocationMap
from bundle_runtime.domain.manifest import OutputDefinition, Step


# RuntimeManifest is the manifest collaborator the runtime drives: validation, templating and bookkeeping.
@runtime_checkable
class RuntimeManifest(Protocol):
    @property
    def action(self) -> str:
        """Name of the action being executed."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    @property
    def name(self) -> str:
        """Bundle name as declared by the manifest."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def validate(self) -> None:
        """Raise when the manifest cannot run the current action."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def prepare(self) -> None:
        """Materialize runtime prerequisites (e.g. file parameters) before any step runs."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def resolve_images(self, metadata: BundleMetadata, relocation_map: RelocationMap) -> None:
        """Update declared images from runtime bundle metadata and relocation mapping."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def resolve_step(self, step: Step) -> Step:
        """Return the step with templates, parameters and credentials substituted."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def apply_step_outputs(self, outputs: Mapping[str, str]) -> None:
        """Record values produced by the step that just finished."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def steps(self) -> Sequence[Step]:
        """Steps of the current action in declared order."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def output_definitions(self) -> Mapping[str, OutputDefinition]:
        """Declared bundle outputs keyed by name."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def produced_outputs(self) -> Mapping[str, str]:
        """Values produced by steps so far, keyed by output name."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")

    def sensitive_values(self) -> list[str]:
        """Every value currently known to be sensitive."""
        raise NotImplementedError("RuntimeManifest is a port; use a concrete adapter.")
