from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

from bundle_runtime.adapters.image_metadata import load_image_mapping_files
from bundle_runtime.config.models import ENV_BUNDLE_NAME, ENV_INSTALLATION_NAME
from bundle_runtime.domain.bundle import BundleMetadata, RelocationMap
from bundle_runtime.domain.errors import (
    BundleRuntimeError,
    ImageMetadataError,
    PreparationError,
    UnboundOutputErrors,
    ValidationError,
)
from bundle_runtime.domain.outcome import ExecutionOutcome
from bundle_runtime.kernel.output_binder import BundleOutputBinder
from bundle_runtime.kernel.step_executor import StepExecutor
from bundle_runtime.kernel.unbound_outputs import UnboundOutputResolver
from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.observability.redaction import SensitiveValueMask
from bundle_runtime.ports.manifest import RuntimeManifest
from bundle_runtime.ports.mixin_invoker import MixinInvoker
from bundle_runtime.ports.output_channel import OutputChannel
from bundle_runtime.ports.output_store import BundleOutputStore

T = TypeVar("T")

ImageMetadataLoader = Callable[[], tuple[BundleMetadata, RelocationMap]]


class BundleRuntime:
    # Drives one action: steps stop at the first failure, output collection always runs afterwards.
    def __init__(
        self,
        *,
        invoker: MixinInvoker,
        channel: OutputChannel,
        store: BundleOutputStore,
        logger: RuntimeLogger,
        mask: SensitiveValueMask,
        bundle_json: Path,
        relocation_mapping: Path,
        env: Mapping[str, str] | None = None,
        image_loader: ImageMetadataLoader | None = None,
    ) -> None:
        self._invoker = invoker
        self._channel = channel
        self._store = store
        self._logger = logger
        self._mask = mask
        self._env = os.environ if env is None else env
        self._image_loader = image_loader or (lambda: load_image_mapping_files(bundle_json, relocation_mapping))

    def execute(self, manifest: RuntimeManifest) -> ExecutionOutcome:
        installation = self._env.get(ENV_INSTALLATION_NAME, "")
        bundle = self._env.get(ENV_BUNDLE_NAME, "") or manifest.name
        self._logger.info(f"executing {manifest.action} action from {bundle} (installation: {installation})")

        _run_stage(manifest.validate, ValidationError)
        # File parameters and similar prerequisites are materialized before any step runs.
        _run_stage(manifest.prepare, PreparationError)

        metadata, relocation_map = _run_stage(self._image_loader, ImageMetadataError)
        _run_stage(lambda: manifest.resolve_images(metadata, relocation_map), ImageMetadataError)

        self._channel.ensure()

        executor = StepExecutor(
            manifest=manifest,
            invoker=self._invoker,
            channel=self._channel,
            binder=BundleOutputBinder(manifest=manifest, store=self._store),
            logger=self._logger,
            mask=self._mask,
        )
        executed = 0
        execution_error: BundleRuntimeError | None = None
        try:
            for step in manifest.steps():
                try:
                    executor.execute(step)
                except BundleRuntimeError as exc:
                    execution_error = exc
                    break
                executed += 1
        finally:
            # Runs even when a step escapes with an unexpected exception, which then propagates.
            unbound_error = self._collect_unbound_outputs(manifest)

        outcome = ExecutionOutcome(
            action=manifest.action,
            steps_executed=executed,
            error=execution_error,
            unbound_error=unbound_error,
        )
        outcome.raise_for_error()
        self._logger.info("execution completed successfully!")
        return outcome

    def _collect_unbound_outputs(self, manifest: RuntimeManifest) -> UnboundOutputErrors | None:
        try:
            UnboundOutputResolver(manifest=manifest, store=self._store, logger=self._logger).resolve()
        except UnboundOutputErrors as exc:
            # Collection is best effort; the bundle still exits with the step result.
            self._logger.error(str(exc))
            return exc
        return None


def _run_stage(fn: Callable[[], T], error_type: type[BundleRuntimeError]) -> T:
    # Collaborator failures surface as the stage's error type; already-staged errors pass through.
    try:
        return fn()
    except BundleRuntimeError:
        raise
    except Exception as exc:  # noqa: BLE001 - every pre-loop stage is fatal
        raise error_type(exc) from exc
