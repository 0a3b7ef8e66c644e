from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field

# Original image reference -> relocated reference (relocation-mapping.json).
RelocationMap: TypeAlias = dict[str, str]


class BundleImage(BaseModel):
    # Subset of a CNAB image entry; unknown keys are tolerated (bundle.json is produced elsewhere).
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    image: str
    image_type: str | None = Field(default=None, alias="imageType")
    content_digest: str | None = Field(default=None, alias="contentDigest")
    description: str | None = None


class BundleMetadata(BaseModel):
    # Runtime bundle.json as mounted into the invocation image.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str = ""
    version: str = ""
    schema_version: str | None = Field(default=None, alias="schemaVersion")
    images: dict[str, BundleImage] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ImageReference:
    repository: str
    tag: str | None = None
    digest: str | None = None


def parse_image_reference(ref: str) -> ImageReference:
    # Splits repo[:tag][@digest]; a colon before the last "/" is a registry port, not a tag.
    ref = ref.strip()
    if not ref:
        raise ValueError("image reference must be a non-empty string")
    name, _, digest = ref.partition("@")
    tag: str | None = None
    slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > slash:
        name, tag = name[:colon], name[colon + 1 :]
    if not name or (tag is not None and not tag) or ("@" in ref and not digest):
        raise ValueError(f"invalid image reference {ref!r}")
    return ImageReference(repository=name, tag=tag, digest=digest or None)


def relocate(ref: str, relocation_map: RelocationMap) -> str:
    # Falls back to the original reference when the image was not relocated.
    return relocation_map.get(ref, ref)
