from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

# Mixin invokers: external executables and in-process handlers.
from bundle_runtime.adapters.mixin_invoker import InProcessMixinInvoker, SubprocessMixinInvoker
from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.observability.redaction import MASK, RedactingLogSink, SensitiveValueMask
from bundle_runtime.ports.mixin_invoker import CommandOptions, MixinRunError

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as the mixin binary")


def _install_mixin(mixins_dir: Path, name: str, script: str, *, runtime: bool = True) -> Path:
    if runtime:
        binary = mixins_dir / name / "runtimes" / f"{name}-runtime"
    else:
        binary = mixins_dir / name / name
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_text("#!/bin/sh\n" + script, encoding="utf-8")
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return binary


def test_binary_path_layout(tmp_path: Path, list_sink) -> None:
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink))
    assert invoker.binary_path("helm3", runtime=True) == tmp_path / "helm3" / "runtimes" / "helm3-runtime"
    assert invoker.binary_path("helm3", runtime=False) == tmp_path / "helm3" / "helm3"


def test_missing_binary_is_run_error(tmp_path: Path, list_sink) -> None:
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink))
    with pytest.raises(MixinRunError, match="not installed"):
        invoker.run("exec", CommandOptions(command="install"))


@posix_only
def test_subprocess_receives_envelope_and_relays_output(tmp_path: Path, list_sink) -> None:
    captured = tmp_path / "stdin.yaml"
    _install_mixin(
        tmp_path / "mixins",
        "exec",
        f'cat > "{captured}"\necho "command=$1"\necho "warned" >&2\n',
    )
    invoker = SubprocessMixinInvoker(tmp_path / "mixins", RuntimeLogger(list_sink), env=dict(os.environ))

    result = invoker.run("exec", CommandOptions(command="upgrade", input="upgrade:\n- exec: {}\n"))

    assert result is None
    assert captured.read_text(encoding="utf-8") == "upgrade:\n- exec: {}\n"
    assert list_sink.lines("info") == ["command=upgrade"]
    assert list_sink.lines("warning") == ["warned"]


@posix_only
def test_subprocess_passes_debug_flag(tmp_path: Path, list_sink) -> None:
    _install_mixin(tmp_path, "exec", 'echo "$@"\n')
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink, debug=True), env=dict(os.environ))

    invoker.run("exec", CommandOptions(command="install"))

    assert "install --debug" in list_sink.lines("info")


@posix_only
def test_subprocess_nonzero_exit_is_run_error(tmp_path: Path, list_sink) -> None:
    _install_mixin(tmp_path, "terraform", 'echo "plan failed" >&2\nexit 3\n')
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink), env=dict(os.environ))

    with pytest.raises(MixinRunError, match="exited with code 3"):
        invoker.run("terraform", CommandOptions(command="install"))
    # Diagnostics are still relayed before the failure is raised.
    assert list_sink.lines("warning") == ["plan failed"]


@posix_only
def test_subprocess_timeout_is_run_error(tmp_path: Path, list_sink) -> None:
    _install_mixin(tmp_path, "slow", "exec sleep 5\n")
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink), timeout=0.2, env=dict(os.environ))

    with pytest.raises(MixinRunError, match="timed out"):
        invoker.run("slow", CommandOptions(command="install"))


@posix_only
def test_subprocess_build_time_binary(tmp_path: Path, list_sink) -> None:
    _install_mixin(tmp_path, "helm3", 'echo "build $1"\n', runtime=False)
    invoker = SubprocessMixinInvoker(tmp_path, RuntimeLogger(list_sink), env=dict(os.environ))

    invoker.run("helm3", CommandOptions(command="version", runtime=False))

    assert list_sink.lines("info") == ["build version"]


def test_in_process_invoker_returns_string_outputs() -> None:
    seen: list[CommandOptions] = []

    def handler(options: CommandOptions) -> dict[str, object]:
        seen.append(options)
        return {"replicas": 3, "ready": True}

    invoker = InProcessMixinInvoker({"kube": handler})
    options = CommandOptions(command="install", input="install: []\n")

    assert invoker.run("kube", options) == {"replicas": "3", "ready": "True"}
    assert seen == [options]


def test_in_process_invoker_none_result_and_registration() -> None:
    invoker = InProcessMixinInvoker()
    invoker.register("noop", lambda options: None)
    assert invoker.run("noop", CommandOptions(command="install")) is None

    with pytest.raises(TypeError):
        invoker.register("bad", "not callable")  # type: ignore[arg-type]
    with pytest.raises(MixinRunError, match="not registered"):
        invoker.run("unknown", CommandOptions(command="install"))


@posix_only
def test_subprocess_masks_values_spanning_lines(tmp_path: Path, list_sink) -> None:
    key = "-----BEGIN KEY-----\nTOPSECRETBODY\n-----END KEY-----"
    _install_mixin(
        tmp_path,
        "exec",
        "printf '%s\\n' 'loading key' '-----BEGIN KEY-----' 'TOPSECRETBODY' '-----END KEY-----'\n"
        "printf '%s\\n' '-----BEGIN KEY-----' 'TOPSECRETBODY' '-----END KEY-----' >&2\n",
    )
    mask = SensitiveValueMask([key])
    logger = RuntimeLogger(RedactingLogSink(list_sink, mask))
    invoker = SubprocessMixinInvoker(tmp_path, logger, env=dict(os.environ), mask=mask)

    invoker.run("exec", CommandOptions(command="install"))

    assert list_sink.lines("info") == ["loading key", MASK]
    assert list_sink.lines("warning") == [MASK]
    assert not any("TOPSECRETBODY" in line for line in list_sink.lines())
