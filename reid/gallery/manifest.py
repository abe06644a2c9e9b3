"""Gallery manifest parsing and schema validation.

A manifest is a JSON array of identities:

    [
        {"name": "Alice", "features": ["alice_0.bin", "alice_1.bin"]},
        {"name": "Bob", "features": ["/data/gallery/bob.bin"]}
    ]

Relative feature paths that do not exist from the current directory are
resolved against the manifest's own directory.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from reid.gallery.errors import FormatError, GalleryIOError, ParseError, ResourceNotFoundError


class ManifestEntry(BaseModel):
    """One identity in the manifest."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: StrictStr = Field(description="Display label of the identity")
    features: List[StrictStr] = Field(description="Paths to raw float32 feature files")


_MANIFEST_ADAPTER = TypeAdapter(List[ManifestEntry])


def read_manifest(manifest_path: Path) -> List[ManifestEntry]:
    """Read and validate a manifest file.

    Raises ResourceNotFoundError, GalleryIOError, ParseError or FormatError.
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        raise ResourceNotFoundError(f"Cannot open gallery file: {manifest_path}", path=str(manifest_path))
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"gallery file {manifest_path} is not proper json: {e}", path=str(manifest_path)) from e
    except OSError as e:
        raise GalleryIOError(f"Failed to read gallery file {manifest_path}: {e}", path=str(manifest_path)) from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"gallery file {manifest_path} is not proper json: {e}", path=str(manifest_path)) from e

    return validate_manifest(document, source=str(manifest_path))


def validate_manifest(document, source: str = "<memory>") -> List[ManifestEntry]:
    """Validate an already-parsed JSON document against the manifest schema."""
    try:
        return _MANIFEST_ADAPTER.validate_python(document)
    except ValidationError as e:
        raise FormatError(f"gallery json validation failed for {source}: {e}", path=source) from e


def resolve_feature_path(feature: str, manifest_path: Path) -> Path:
    """Return `feature` as-is if it names an existing file, else relative to the manifest dir."""
    path = Path(feature)
    if path.is_file():
        return path
    return Path(manifest_path).parent / path
