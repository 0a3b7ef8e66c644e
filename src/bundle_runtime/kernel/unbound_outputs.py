from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bundle_runtime.domain.errors import UnboundOutputCopyError, UnboundOutputErrors
from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.ports.manifest import RuntimeManifest
from bundle_runtime.ports.output_store import BundleOutputStore


@dataclass(frozen=True, slots=True)
class UnboundOutputResolver:
    # Copies file-backed outputs no step produced; every copy is attempted and failures are raised together.
    manifest: RuntimeManifest
    store: BundleOutputStore
    logger: RuntimeLogger

    def resolve(self) -> None:
        try:
            self.store.ensure()
        except OSError as exc:
            raise UnboundOutputErrors(
                [UnboundOutputCopyError(exc, stage="unable to ensure bundle outputs directory exists")]
            ) from exc

        definitions = self.manifest.output_definitions()
        if definitions:
            self.logger.info("Collecting bundle outputs...")

        produced = self.manifest.produced_outputs()
        action = self.manifest.action
        errors: list[UnboundOutputCopyError] = []
        for definition in definitions.values():
            # An empty produced value counts as unbound.
            if produced.get(definition.name):
                continue
            # Only file-backed outputs can be collected without a producing step.
            if not definition.path:
                continue
            if not definition.applies_to(action):
                continue
            source = Path(definition.path)
            try:
                self.store.copy_from(definition.name, source)
            except (OSError, ValueError) as exc:
                errors.append(
                    UnboundOutputCopyError(exc, resource=f"from {source} to {self._target(definition.name)}")
                )
                continue
            self.logger.debug(f"collected output {definition.name} from {source}", output=definition.name)

        if errors:
            raise UnboundOutputErrors(errors)

    def _target(self, name: str) -> str:
        try:
            return str(self.store.path_for(name))
        except ValueError:
            return name
