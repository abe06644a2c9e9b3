from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from reid.config import DEFAULT_THRESHOLD
from reid.gallery.errors import GalleryError
from reid.gallery.labels import LabelResolver
from reid.gallery.loader import LoadResult, load_gallery
from reid.gallery.matcher import CosineMatcher, MatcherConfig, MatchResult
from reid.gallery.store import Gallery


class EmbeddingsIdentifier:
    """Gallery + matcher + label lookup built from one manifest.

    Construction loads the manifest synchronously and keeps the `LoadResult`;
    a failed load leaves a partial (possibly empty) gallery, so check `ok`
    before relying on `identify`.
    """

    def __init__(self, manifest_path, threshold: float = DEFAULT_THRESHOLD, device: str = "auto"):
        self.load_result: LoadResult = load_gallery(manifest_path, threshold)
        self._matcher = CosineMatcher(self.gallery, MatcherConfig(threshold=float(threshold), device=device))
        self._labels = LabelResolver(self.gallery)

    @property
    def gallery(self) -> Gallery:
        return self.load_result.gallery

    @property
    def threshold(self) -> float:
        return self.load_result.threshold

    @property
    def ok(self) -> bool:
        return self.load_result.ok

    @property
    def error(self) -> Optional[GalleryError]:
        return self.load_result.error

    def size(self) -> int:
        return self.gallery.size()

    def identify(self, embeddings: Sequence[np.ndarray]) -> List[MatchResult]:
        return self._matcher.match(embeddings)

    def label_of(self, identity_id: int) -> str:
        return self._labels.label_of(identity_id)

    def labels_in_order(self) -> List[str]:
        return self._labels.labels_in_order()

    def describe(self, result: MatchResult) -> str:
        return self._labels.describe(result)
