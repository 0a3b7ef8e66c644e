from __future__ import annotations

from dataclasses import dataclass

from bundle_runtime.domain.errors import (
    BundleRuntimeError,
    MixinExecutionError,
    OutputBindError,
    OutputReadError,
    StepResolutionError,
)
from bundle_runtime.domain.manifest import ActionInput, Step
from bundle_runtime.kernel.output_binder import BundleOutputBinder
from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.observability.redaction import SensitiveValueMask
from bundle_runtime.ports.manifest import RuntimeManifest
from bundle_runtime.ports.mixin_invoker import CommandOptions, MixinInvoker
from bundle_runtime.ports.output_channel import OutputChannel


@dataclass(frozen=True, slots=True)
class StepExecutor:
    # Runs one step end to end: resolve, invoke mixin, drain the output channel, bind outputs.
    manifest: RuntimeManifest
    invoker: MixinInvoker
    channel: OutputChannel
    binder: BundleOutputBinder
    logger: RuntimeLogger
    mask: SensitiveValueMask

    def execute(self, step: Step) -> None:
        action = self.manifest.action
        try:
            resolved = self.manifest.resolve_step(step)
        except BundleRuntimeError:
            raise
        except Exception as exc:  # noqa: BLE001 - collaborator failure is reported with the step stage
            raise StepResolutionError(exc, resource=step.mixin) from exc

        # Values identified while resolving this step are masked from its first log line on.
        self.mask.replace(self.manifest.sensitive_values())

        if resolved.description:
            self.logger.info(resolved.description)

        envelope = ActionInput.for_step(action, resolved)
        options = CommandOptions(command=action, input=envelope.to_yaml(), runtime=True)
        try:
            direct_outputs = self.invoker.run(resolved.mixin, options)
        except BundleRuntimeError:
            raise
        except Exception as exc:  # noqa: BLE001 - any mixin failure aborts the action
            raise MixinExecutionError(exc, resource=resolved.mixin) from exc

        try:
            outputs = self.channel.read_and_clear()
        except BundleRuntimeError:
            raise
        except OSError as exc:
            raise OutputReadError(exc, resource=resolved.mixin) from exc
        if direct_outputs:
            outputs.update(direct_outputs)
        if outputs:
            self.logger.debug(f"step produced outputs: {', '.join(sorted(outputs))}", mixin=resolved.mixin)

        try:
            self.manifest.apply_step_outputs(outputs)
        except BundleRuntimeError:
            raise
        except Exception as exc:  # noqa: BLE001 - manifest bookkeeping failures stop the action
            raise OutputBindError(exc, resource=resolved.mixin, stage="unable to apply step outputs") from exc

        self.binder.bind(outputs)
