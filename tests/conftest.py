from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import pytest

from bundle_runtime.adapters.output_channel import FileOutputChannel
from bundle_runtime.adapters.output_store import FileBundleOutputStore
from bundle_runtime.domain.bundle import BundleMetadata, RelocationMap
from bundle_runtime.domain.manifest import OutputDefinition, Step
from bundle_runtime.kernel.runtime import BundleRuntime
from bundle_runtime.observability.logging import LogMessage, RuntimeLogger
from bundle_runtime.observability.redaction import RedactingLogSink, SensitiveValueMask
from bundle_runtime.ports.mixin_invoker import CommandOptions

# Shared fakes for kernel tests: an in-memory manifest, a mixin invoker that writes
# into the output channel the way an external mixin would, and a capturing log sink.


class ListLogSink:
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []
        self.closed = False

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True

    def lines(self, level: str | None = None) -> list[str]:
        return [m.message for m in self.messages if level is None or m.level == level]


class FakeManifest:
    def __init__(
        self,
        steps: Iterable[Step] = (),
        outputs: Iterable[OutputDefinition] = (),
        *,
        action: str = "install",
        name: str = "mybundle",
        sensitive: Iterable[str] = (),
        failures: Mapping[str, Exception] | None = None,
    ) -> None:
        self._steps = list(steps)
        self._outputs = {o.name: o for o in outputs}
        self._action = action
        self._name = name
        self._sensitive = list(sensitive)
        self._failures = dict(failures or {})
        self.produced: dict[str, str] = {}
        self.calls: list[str] = []
        self.resolved_images: tuple[BundleMetadata, RelocationMap] | None = None

    @property
    def action(self) -> str:
        return self._action

    @property
    def name(self) -> str:
        return self._name

    def _record(self, stage: str) -> None:
        self.calls.append(stage)
        if stage in self._failures:
            raise self._failures[stage]

    def validate(self) -> None:
        self._record("validate")

    def prepare(self) -> None:
        self._record("prepare")

    def resolve_images(self, metadata: BundleMetadata, relocation_map: RelocationMap) -> None:
        self._record("resolve_images")
        self.resolved_images = (metadata, relocation_map)

    def resolve_step(self, step: Step) -> Step:
        self._record(f"resolve_step:{step.mixin}")
        return step

    def apply_step_outputs(self, outputs: Mapping[str, str]) -> None:
        self._record("apply_step_outputs")
        self.produced.update(outputs)

    def steps(self) -> list[Step]:
        return list(self._steps)

    def output_definitions(self) -> dict[str, OutputDefinition]:
        return dict(self._outputs)

    def produced_outputs(self) -> dict[str, str]:
        return dict(self.produced)

    def sensitive_values(self) -> list[str]:
        return list(self._sensitive)

    def add_sensitive(self, value: str) -> None:
        self._sensitive.append(value)


class ChannelWritingInvoker:
    # Each queued entry is either the files a mixin writes or an exception it fails with.
    def __init__(self, channel_dir: Path) -> None:
        self.channel_dir = channel_dir
        self.calls: list[tuple[str, CommandOptions]] = []
        self._script: list[Mapping[str, str] | Exception] = []
        self.on_call: Callable[[str, CommandOptions], None] | None = None

    def queue(self, *entries: Mapping[str, str] | Exception) -> ChannelWritingInvoker:
        self._script.extend(entries)
        return self

    def run(self, mixin: str, options: CommandOptions) -> None:
        self.calls.append((mixin, options))
        if self.on_call is not None:
            self.on_call(mixin, options)
        entry = self._script.pop(0) if self._script else {}
        if isinstance(entry, Exception):
            raise entry
        for name, value in entry.items():
            (self.channel_dir / name).write_text(value, encoding="utf-8")
        return None


@dataclass
class RuntimeDirs:
    root: Path
    channel: Path
    store: Path
    bundle_json: Path
    relocation_mapping: Path


@dataclass
class RuntimeHarness:
    runtime: BundleRuntime
    sink: ListLogSink
    mask: SensitiveValueMask
    dirs: RuntimeDirs


@pytest.fixture
def runtime_dirs(tmp_path: Path) -> RuntimeDirs:
    cnab = tmp_path / "cnab"
    app = cnab / "app"
    app.mkdir(parents=True)
    bundle_json = cnab / "bundle.json"
    bundle_json.write_text('{"name": "mybundle", "version": "0.1.0", "images": {}}', encoding="utf-8")
    return RuntimeDirs(
        root=tmp_path,
        channel=app / "porter" / "outputs",
        store=app / "outputs",
        bundle_json=bundle_json,
        relocation_mapping=app / "relocation-mapping.json",
    )


@pytest.fixture
def fake_manifest() -> type[FakeManifest]:
    return FakeManifest


@pytest.fixture
def invoker(runtime_dirs: RuntimeDirs) -> ChannelWritingInvoker:
    return ChannelWritingInvoker(runtime_dirs.channel)


@pytest.fixture
def list_sink() -> ListLogSink:
    return ListLogSink()


@pytest.fixture
def make_harness(runtime_dirs: RuntimeDirs) -> Callable[..., RuntimeHarness]:
    def _make(invoker: object, *, env: Mapping[str, str] | None = None, debug: bool = False) -> RuntimeHarness:
        sink = ListLogSink()
        mask = SensitiveValueMask()
        logger = RuntimeLogger(RedactingLogSink(sink, mask), debug=debug)
        runtime = BundleRuntime(
            invoker=invoker,  # type: ignore[arg-type]
            channel=FileOutputChannel(runtime_dirs.channel),
            store=FileBundleOutputStore(runtime_dirs.store),
            logger=logger,
            mask=mask,
            bundle_json=runtime_dirs.bundle_json,
            relocation_mapping=runtime_dirs.relocation_mapping,
            env=env or {},
        )
        return RuntimeHarness(runtime=runtime, sink=sink, mask=mask, dirs=runtime_dirs)

    return _make
