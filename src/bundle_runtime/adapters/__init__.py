from .image_metadata import load_bundle_metadata, load_image_mapping_files, load_relocation_map
from .manifest import ManifestDocument, ManifestError, YamlRuntimeManifest, load_manifest_document
from .mixin_invoker import InProcessMixinInvoker, SubprocessMixinInvoker
from .output_channel import FileOutputChannel
from .output_store import FileBundleOutputStore

# Public adapter exports are optional but make wiring simpler.
__all__ = [
    "FileBundleOutputStore",
    "FileOutputChannel",
    "InProcessMixinInvoker",
    "ManifestDocument",
    "ManifestError",
    "SubprocessMixinInvoker",
    "YamlRuntimeManifest",
    "load_bundle_metadata",
    "load_image_mapping_files",
    "load_manifest_document",
    "load_relocation_map",
]
