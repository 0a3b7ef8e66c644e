from __future__ import annotations

import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path

from bundle_runtime.observability.logging import RuntimeLogger
from bundle_runtime.observability.redaction import SensitiveValueMask
from bundle_runtime.ports.mixin_invoker import CommandOptions, MixinInvoker, MixinRunError

MixinHandler = Callable[[CommandOptions], Mapping[str, str] | None]


class SubprocessMixinInvoker(MixinInvoker):
    # Runs installed mixin executables and relays their masked stdout/stderr through the logger.
    def __init__(
        self,
        mixins_dir: Path,
        logger: RuntimeLogger,
        *,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
        mask: SensitiveValueMask | None = None,
    ) -> None:
        self._mixins_dir = mixins_dir
        self._mask = mask
        self._logger = logger
        self._timeout = timeout
        self._env = dict(env) if env is not None else None

    def binary_path(self, mixin: str, *, runtime: bool) -> Path:
        if runtime:
            return self._mixins_dir / mixin / "runtimes" / f"{mixin}-runtime"
        return self._mixins_dir / mixin / mixin

    def run(self, mixin: str, options: CommandOptions) -> Mapping[str, str] | None:
        binary = self.binary_path(mixin, runtime=options.runtime)
        if not binary.is_file():
            raise MixinRunError(f"mixin {mixin} is not installed at {binary}")

        args = [str(binary), options.command]
        if self._logger.debug_enabled:
            args.append("--debug")
        self._logger.debug(f"running mixin {mixin}", mixin=mixin, command=" ".join(args))

        try:
            completed = subprocess.run(
                args,
                input=options.input,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout,
                env=self._env,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise MixinRunError(f"mixin {mixin} timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise MixinRunError(f"could not start mixin {mixin}: {exc}") from exc

        self._relay(mixin, completed.stdout, stream="stdout")
        self._relay(mixin, completed.stderr, stream="stderr")
        if completed.returncode != 0:
            raise MixinRunError(f"mixin {mixin} exited with code {completed.returncode}")
        # Executable mixins hand outputs over through the output channel only.
        return None

    def _relay(self, mixin: str, text: str | None, *, stream: str) -> None:
        if not text:
            return
        # Values spanning several lines only match against the whole stream.
        if self._mask is not None:
            text = self._mask.redact(text)
        for line in text.splitlines():
            if stream == "stderr":
                self._logger.warning(line, mixin=mixin, stream=stream)
            else:
                self._logger.info(line, mixin=mixin, stream=stream)


class InProcessMixinInvoker(MixinInvoker):
    # Registry of Python callables standing in for mixins; results are returned as structured outputs.
    def __init__(self, handlers: Mapping[str, MixinHandler] | None = None) -> None:
        self._handlers: dict[str, MixinHandler] = dict(handlers or {})

    def register(self, mixin: str, handler: MixinHandler) -> None:
        if not callable(handler):
            raise TypeError(f"handler for mixin {mixin} must be callable")
        self._handlers[mixin] = handler

    def run(self, mixin: str, options: CommandOptions) -> Mapping[str, str] | None:
        handler = self._handlers.get(mixin)
        if handler is None:
            raise MixinRunError(f"mixin {mixin} is not registered")
        result = handler(options)
        if result is None:
            return None
        return {str(key): str(value) for key, value in result.items()}
