from __future__ import annotations

from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bundle_runtime.domain.bundle import BundleMetadata, RelocationMap
from bundle_runtime.domain.errors import ImageMetadataError

_RELOCATION_MAP = TypeAdapter(RelocationMap)


def load_bundle_metadata(path: Path) -> BundleMetadata:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ImageMetadataError(exc, resource=str(path), stage="couldn't read runtime bundle.json") from exc
    try:
        return BundleMetadata.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise ImageMetadataError(exc, resource=str(path), stage="couldn't load runtime bundle.json") from exc


def load_relocation_map(path: Path) -> RelocationMap:
    # The relocation mapping only exists for relocated bundles; absence means "no relocation".
    if not path.exists():
        return {}
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ImageMetadataError(exc, resource=str(path), stage="couldn't read relocation file") from exc
    try:
        return _RELOCATION_MAP.validate_json(raw)
    except PydanticValidationError as exc:
        raise ImageMetadataError(exc, resource=str(path), stage="couldn't load relocation file") from exc


def load_image_mapping_files(bundle_json: Path, relocation_mapping: Path) -> tuple[BundleMetadata, RelocationMap]:
    return load_bundle_metadata(bundle_json), load_relocation_map(relocation_mapping)
