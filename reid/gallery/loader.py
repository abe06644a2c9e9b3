from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from reid.config import DEFAULT_THRESHOLD, FEATURE_DTYPE
from reid.gallery.errors import DataError, FormatError, GalleryError, GalleryIOError, ResourceNotFoundError
from reid.gallery.manifest import read_manifest, resolve_feature_path
from reid.gallery.store import Gallery, GalleryBuilder, sequential_ids
from reid.utils.log import get_logger

logger = get_logger(__name__)

_ITEM_SIZE = np.dtype(FEATURE_DTYPE).itemsize


@dataclass(frozen=True)
class LoadResult:
    """Outcome of `load_gallery`.

    `gallery` is always present: on failure it holds only the identities that
    were fully loaded before the error. Check `ok` before trusting matches.
    """

    gallery: Gallery
    threshold: float
    manifest_path: Path
    error: Optional[GalleryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Gallery:
        if self.error is not None:
            raise self.error
        return self.gallery


def read_feature_file(path: Path, expected_dim: Optional[int] = None) -> np.ndarray:
    """Read one raw float32 feature file as a 1D embedding.

    Raises ResourceNotFoundError, FormatError, GalleryIOError or DataError.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceNotFoundError(f"Cannot open feature file: {path}", path=str(path))
    try:
        num_bytes = path.stat().st_size
    except OSError as e:
        raise GalleryIOError(f"Failed to stat feature file {path}: {e}", path=str(path)) from e

    if num_bytes % _ITEM_SIZE:
        raise FormatError(
            f"Tensor file is wrong size for file {path}: {num_bytes} bytes is not a multiple of {_ITEM_SIZE}",
            path=str(path),
        )
    if num_bytes == 0:
        raise FormatError(f"Tensor file {path} is empty", path=str(path))

    dim = num_bytes // _ITEM_SIZE
    if expected_dim is not None and dim != expected_dim:
        raise FormatError(
            f"Tensor file {path} has {dim} values, gallery embeddings have {expected_dim}",
            path=str(path),
        )

    try:
        emb = np.fromfile(str(path), dtype=FEATURE_DTYPE)
    except OSError as e:
        raise GalleryIOError(f"Failed to read feature file {path}: {e}", path=str(path)) from e
    if emb.size != dim:
        raise GalleryIOError(f"Short read on feature file {path}: got {emb.size} of {dim} values", path=str(path))

    if np.isnan(emb).any():
        raise DataError(f"Tensor file {path} has invalid data (NaN)", path=str(path))

    return emb.astype(np.float32, copy=False)


def load_gallery(
    manifest_path,
    threshold: float = DEFAULT_THRESHOLD,
    id_policy: Optional[Callable[[], int]] = None,
) -> LoadResult:
    """Build a gallery from a manifest file.

    Never raises for bad input files: the first failure stops loading and is
    returned in `LoadResult.error` next to the partially built gallery.
    Ids follow `id_policy` (default: 0, 1, 2, ... in manifest order).
    """
    manifest_path = Path(manifest_path)
    builder = GalleryBuilder(id_policy=id_policy or sequential_ids())
    error: Optional[GalleryError] = None

    try:
        entries = read_manifest(manifest_path)
        dim: Optional[int] = None
        for entry in entries:
            identity_id = builder.next_id()
            embeddings: List[np.ndarray] = []
            for feature in entry.features:
                path = resolve_feature_path(feature, manifest_path)
                emb = read_feature_file(path, expected_dim=dim)
                dim = int(emb.shape[0])
                embeddings.append(emb)
            builder.add_identity(identity_id, entry.name, embeddings)
            logger.debug(f"gallery: id={identity_id} label={entry.name!r} embeddings={len(embeddings)}")
    except GalleryError as e:
        error = e
        logger.error(f"gallery load failed for {manifest_path}: {e}")

    gallery = builder.build()
    if error is None:
        logger.info(
            f"gallery loaded from {manifest_path}: {gallery.size()} identities, "
            f"{gallery.num_embeddings} embeddings, dim={gallery.dim}"
        )
    return LoadResult(gallery=gallery, threshold=float(threshold), manifest_path=manifest_path, error=error)
