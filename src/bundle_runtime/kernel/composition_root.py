from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from bundle_runtime.adapters.mixin_invoker import SubprocessMixinInvoker
from bundle_runtime.adapters.output_channel import FileOutputChannel
from bundle_runtime.adapters.output_store import FileBundleOutputStore
from bundle_runtime.config.models import RuntimeConfig
from bundle_runtime.kernel.runtime import BundleRuntime
from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.observability.redaction import RedactingLogSink, SensitiveValueMask
from bundle_runtime.observability.sinks import FanoutLogSink, JsonlLogSink, TextLogSink
from bundle_runtime.ports.log_sink import LogSink
from bundle_runtime.ports.mixin_invoker import MixinInvoker


@dataclass(frozen=True, slots=True)
class RuntimeWiring:
    # Composition root output: runtime plus the shared logger/mask it was wired with.
    runtime: BundleRuntime
    logger: RuntimeLogger
    mask: SensitiveValueMask


def build_logger(
    config: RuntimeConfig,
    mask: SensitiveValueMask,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> RuntimeLogger:
    # Redaction wraps every sink so no adapter ever sees an unmasked value.
    sink: LogSink = TextLogSink(out=out, err=err)
    if config.logging.jsonl_path:
        sink = FanoutLogSink(sink, JsonlLogSink(Path(config.logging.jsonl_path)))
    return RuntimeLogger(RedactingLogSink(sink, mask), debug=config.logging.debug)


def build_runtime(
    config: RuntimeConfig,
    *,
    invoker: MixinInvoker | None = None,
    env: Mapping[str, str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> RuntimeWiring:
    mask = SensitiveValueMask()
    logger = build_logger(config, mask, out=out, err=err)
    paths = config.paths
    if invoker is None:
        invoker = SubprocessMixinInvoker(
            Path(paths.mixins_dir),
            logger,
            timeout=config.mixins.timeout_seconds,
            env=env,
            mask=mask,
        )
    runtime = BundleRuntime(
        invoker=invoker,
        channel=FileOutputChannel(Path(paths.mixin_outputs_dir)),
        store=FileBundleOutputStore(Path(paths.bundle_outputs_dir)),
        logger=logger,
        mask=mask,
        bundle_json=Path(paths.bundle_json),
        relocation_mapping=Path(paths.relocation_mapping),
        env=env,
    )
    return RuntimeWiring(runtime=runtime, logger=logger, mask=mask)
