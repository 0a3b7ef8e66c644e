from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from bundle_runtime.config.models import RuntimeConfig


# ConfigError is raised for invalid runtime configuration (fail fast).
class ConfigError(ValueError):
    pass


def load_config(path: Path | None = None) -> RuntimeConfig:
    # Without a file every setting keeps its in-image default.
    if path is None:
        return RuntimeConfig()
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config {path} is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    try:
        return RuntimeConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
