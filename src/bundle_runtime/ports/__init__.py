from .log_sink import LogSink
from .manifest import RuntimeManifest
from .mixin_invoker import CommandOptions, MixinInvoker, MixinRunError
from .output_channel import OutputChannel
from .output_store import BundleOutputStore

# Public port exports keep wiring explicit at composition time.
__all__ = [
    "BundleOutputStore",
    "CommandOptions",
    "LogSink",
    "MixinInvoker",
    "MixinRunError",
    "OutputChannel",
    "RuntimeManifest",
]
