from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Well-known locations inside a CNAB invocation image.
DEFAULT_BUNDLE_JSON = "/cnab/bundle.json"
DEFAULT_RELOCATION_MAPPING = "/cnab/app/relocation-mapping.json"
DEFAULT_MIXIN_OUTPUTS_DIR = "/cnab/app/porter/outputs"
DEFAULT_BUNDLE_OUTPUTS_DIR = "/cnab/app/outputs"
DEFAULT_MIXINS_DIR = "/cnab/app/mixins"
DEFAULT_MANIFEST = "/cnab/app/porter.yaml"

# Environment consumed read-only by the runtime.
ENV_ACTION = "CNAB_ACTION"
ENV_BUNDLE_NAME = "CNAB_BUNDLE_NAME"
ENV_INSTALLATION_NAME = "CNAB_INSTALLATION_NAME"


class PathsConfig(BaseModel):
    # Filesystem boundary of the runtime; every path can be redirected for local runs and tests.
    model_config = ConfigDict(extra="forbid")
    bundle_json: str = DEFAULT_BUNDLE_JSON
    relocation_mapping: str = DEFAULT_RELOCATION_MAPPING
    mixin_outputs_dir: str = DEFAULT_MIXIN_OUTPUTS_DIR
    bundle_outputs_dir: str = DEFAULT_BUNDLE_OUTPUTS_DIR
    mixins_dir: str = DEFAULT_MIXINS_DIR
    manifest: str = DEFAULT_MANIFEST


class LoggingConfig(BaseModel):
    # Console output is always human-readable; jsonl_path adds a structured copy.
    model_config = ConfigDict(extra="forbid")
    debug: bool = False
    jsonl_path: str | None = None


class MixinsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    timeout_seconds: float | None = Field(default=None, gt=0)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    mixins: MixinsConfig = Field(default_factory=MixinsConfig)
