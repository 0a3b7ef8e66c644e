from __future__ import annotations

from collections.abc import Sequence

from bundle_runtime.app import run


def main(argv: Sequence[str] | None = None) -> int:
    # Single-line entrypoint delegating to the CLI runtime.
    return run(list(argv) if argv is not None else None)
