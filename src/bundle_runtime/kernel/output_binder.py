from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from bundle_runtime.domain.errors import OutputBindError
from bundle_runtime.ports.manifest import RuntimeManifest
from bundle_runtime.ports.output_store import BundleOutputStore


@dataclass(frozen=True, slots=True)
class BundleOutputBinder:
    # Routes produced step values to declared bundle outputs that are in scope for the action.
    manifest: RuntimeManifest
    store: BundleOutputStore

    def bind(self, outputs: Mapping[str, str]) -> None:
        try:
            self.store.ensure()
        except OSError as exc:
            raise OutputBindError(exc, stage="unable to ensure bundle outputs directory exists") from exc

        definitions = self.manifest.output_definitions()
        action = self.manifest.action
        for name, value in outputs.items():
            definition = definitions.get(name)
            # Not every step output is bundle-visible.
            if definition is None:
                continue
            if not definition.applies_to(action):
                continue
            try:
                self.store.write(definition.name, value)
            except (OSError, ValueError) as exc:
                raise OutputBindError(exc, resource=f"{definition.name} ({self._describe(definition.name)})") from exc

    def _describe(self, name: str) -> str:
        try:
            return str(self.store.path_for(name))
        except ValueError:
            return name
