from __future__ import annotations

from typing import List

from reid.config import UNKNOWN_LABEL
from reid.gallery.matcher import MatchResult
from reid.gallery.store import Gallery


class LabelResolver:
    """Maps identity ids from match results to display labels."""

    def __init__(self, gallery: Gallery, unknown_label: str = UNKNOWN_LABEL):
        self.gallery = gallery
        self.unknown_label = unknown_label

    def label_of(self, identity_id: int) -> str:
        ident = self.gallery.identity(int(identity_id))
        if ident is None:
            return self.unknown_label
        return ident.label

    def labels_in_order(self) -> List[str]:
        """Labels in manifest order; position i is the label of the i-th identity."""
        return [ident.label for ident in self.gallery.identities]

    def size(self) -> int:
        return self.gallery.size()

    def describe(self, result: MatchResult) -> str:
        return f"{self.label_of(result.identity_id)} ({float(result.score):.2f})"
