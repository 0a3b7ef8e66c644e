from .loader import ConfigError, load_config
from .models import LoggingConfig, MixinsConfig, PathsConfig, RuntimeConfig

# Config exports are intentionally small.
__all__ = ["ConfigError", "LoggingConfig", "MixinsConfig", "PathsConfig", "RuntimeConfig", "load_config"]
