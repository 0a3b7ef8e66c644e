from .composition_root import RuntimeWiring, build_logger, build_runtime
from .output_binder import BundleOutputBinder
from .runtime import BundleRuntime
from .step_executor import StepExecutor
from .unbound_outputs import UnboundOutputResolver

# Kernel exports are minimal and runtime-focused.
__all__ = [
    "BundleOutputBinder",
    "BundleRuntime",
    "RuntimeWiring",
    "StepExecutor",
    "UnboundOutputResolver",
    "build_logger",
    "build_runtime",
]
