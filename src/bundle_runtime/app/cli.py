from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from bundle_runtime.adapters.manifest import YamlRuntimeManifest
from bundle_runtime.config.loader import ConfigError, load_config
from bundle_runtime.config.models import ENV_ACTION, ENV_INSTALLATION_NAME, RuntimeConfig
from bundle_runtime.domain.errors import BundleRuntimeError
from bundle_runtime.kernel.composition_root import build_runtime
from bundle_runtime.ports.mixin_invoker import MixinInvoker

# Exit codes: 0 success, 1 action failed, 2 usage or configuration error.
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bundle-runtime", description="Execute a bundle action inside its invocation image")
    parser.add_argument("--action", help=f"Action to execute (defaults to ${ENV_ACTION})")
    parser.add_argument("-f", "--file", help="Path to the bundle manifest (overrides paths.manifest)")
    parser.add_argument("--config", help="Path to YAML runtime config")
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug output")
    parser.add_argument("--log-path", help="Also write structured JSONL logs to this file")
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # Parse CLI arguments; caller passes argv for testability.
    return build_parser().parse_args(argv)


def apply_cli_overrides(config: RuntimeConfig, args: argparse.Namespace) -> None:
    # CLI flags take precedence over the config file.
    if args.file:
        config.paths.manifest = args.file
    if args.debug:
        config.logging.debug = True
    if args.log_path:
        config.logging.jsonl_path = args.log_path


def run(
    argv: Sequence[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    invoker: MixinInvoker | None = None,
) -> int:
    # Thin orchestration wrapper: configuration, wiring and exit-code mapping only.
    env = os.environ if env is None else env
    args = parse_args(argv)
    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return EXIT_USAGE
    apply_cli_overrides(config, args)

    action = args.action or env.get(ENV_ACTION, "")
    if not action:
        print(f"no action given: pass --action or set {ENV_ACTION}", file=sys.stderr)
        return EXIT_USAGE

    try:
        wiring = build_runtime(config, invoker=invoker, env=env)
    except OSError as exc:
        # Only the structured log file is opened while wiring.
        print(f"could not open log file {config.logging.jsonl_path}: {exc}", file=sys.stderr)
        return EXIT_USAGE
    try:
        manifest = YamlRuntimeManifest.load(
            Path(config.paths.manifest),
            action,
            env=env,
            installation_name=env.get(ENV_INSTALLATION_NAME, ""),
        )
        wiring.runtime.execute(manifest)
    except BundleRuntimeError as exc:
        wiring.logger.error(str(exc))
        return EXIT_FAILED
    finally:
        wiring.logger.close()
    return EXIT_OK
