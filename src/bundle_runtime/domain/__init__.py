from .bundle import BundleImage, BundleMetadata, ImageReference, RelocationMap, parse_image_reference
from .errors import (
    BundleRuntimeError,
    ImageMetadataError,
    MixinExecutionError,
    OutputBindError,
    OutputReadError,
    PreparationError,
    StepResolutionError,
    UnboundOutputCopyError,
    UnboundOutputErrors,
    ValidationError,
)
from .manifest import ActionInput, OutputDefinition, Step, applies_to
from .outcome import ExecutionOutcome

# Domain exports cover the types shared by ports, adapters and the kernel.
__all__ = [
    "ActionInput",
    "BundleImage",
    "BundleMetadata",
    "BundleRuntimeError",
    "ExecutionOutcome",
    "ImageMetadataError",
    "ImageReference",
    "MixinExecutionError",
    "OutputBindError",
    "OutputDefinition",
    "OutputReadError",
    "PreparationError",
    "RelocationMap",
    "Step",
    "StepResolutionError",
    "UnboundOutputCopyError",
    "UnboundOutputErrors",
    "ValidationError",
    "applies_to",
    "parse_image_reference",
]
