from __future__ import annotations

import threading

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import torch

from reid.config import DEFAULT_THRESHOLD, SIMILARITY_EPS, UNKNOWN_ID
from reid.gallery.store import Gallery
from reid.utils.math import cosine_similarity_matrix


class MatchResult(NamedTuple):
    identity_id: int
    score: float

    @property
    def is_unknown(self) -> bool:
        return self.identity_id == UNKNOWN_ID


@dataclass
class MatcherConfig:
    # Queries whose best similarity is below this are reported as unknown.
    threshold: float = DEFAULT_THRESHOLD
    eps: float = SIMILARITY_EPS
    # "auto": CUDA when available, else numpy. "cpu" forces numpy, "gpu" requires CUDA.
    device: str = "auto"


class CosineMatcher:
    """Nearest-neighbor identity matcher over a read-only gallery.

    Every query is compared with every reference embedding; the best column
    wins, the earliest one on ties. Matching never mutates the gallery, so one
    matcher can serve many threads. The torch cache is the only lazily built
    state and is guarded by a lock.
    """

    def __init__(self, gallery: Gallery, config: Optional[MatcherConfig] = None):
        self.gallery = gallery
        self.config = config or MatcherConfig()
        if self.config.device not in ("auto", "cpu", "gpu"):
            raise ValueError(f"Unsupported device={self.config.device!r}")

        self._lock = threading.Lock()
        self._cache_matrix_t = None
        self._cache_norms_t = None
        self._cache_device: Optional[str] = None

    def _auto_device(self) -> str:
        if self.config.device == "cpu":
            return "cpu"
        try:
            return "cuda" if torch.cuda.is_available() else "cpu"
        except Exception:
            return "cpu"

    def _ensure_torch_index(self) -> bool:
        device = self._auto_device()
        if device != "cuda":
            if self.config.device == "gpu":
                raise RuntimeError("device='gpu' requested but CUDA is not available")
            return False
        with self._lock:
            if self._cache_matrix_t is not None and self._cache_device == device:
                return True
            self._cache_matrix_t = torch.from_numpy(np.array(self.gallery.matrix)).to(device)
            self._cache_norms_t = torch.from_numpy(np.array(self.gallery.squared_norms)).to(device)
            self._cache_device = device
            return True

    def _as_query_matrix(self, queries: Sequence[np.ndarray]) -> np.ndarray:
        rows = [np.asarray(q, dtype=np.float32).reshape(-1) for q in queries]
        dim = self.gallery.dim
        for i, row in enumerate(rows):
            if row.shape[0] != dim:
                raise ValueError(f"Query {i} has dim={row.shape[0]}, gallery embeddings have dim={dim}")
        return np.stack(rows, axis=0)

    def similarity_matrix(self, queries: Sequence[np.ndarray]) -> np.ndarray:
        """(Q, N) float32 cosine similarities in flat-index column order."""
        if len(queries) == 0 or self.gallery.num_embeddings == 0:
            return np.zeros((len(queries), self.gallery.num_embeddings), dtype=np.float32)
        q = self._as_query_matrix(queries)

        if self._ensure_torch_index():
            q_t = torch.from_numpy(q).to(self._cache_device)
            q_sq = (q_t * q_t).sum(dim=1)
            denom = torch.sqrt(q_sq[:, None] * self._cache_norms_t[None, :]) + float(self.config.eps)
            sims_t = (q_t @ self._cache_matrix_t.T) / denom
            return sims_t.detach().cpu().numpy().astype(np.float32, copy=False)

        return cosine_similarity_matrix(q, self.gallery.matrix, self.gallery.squared_norms, eps=self.config.eps)

    def match(self, queries: Sequence[np.ndarray]) -> List[MatchResult]:
        """Return one (identity_id, score) per query, in input order.

        Empty queries or an empty gallery give an empty list. A query whose best
        similarity is below the threshold maps to UNKNOWN_ID with that best score.
        """
        if len(queries) == 0 or self.gallery.num_embeddings == 0:
            return []

        sims = self.similarity_matrix(queries)
        # argmax returns the first maximal column, so ties resolve to the lower flat index.
        best_cols = np.argmax(sims, axis=1)
        owners = self.gallery.owner_ids
        threshold = float(self.config.threshold)

        results: List[MatchResult] = []
        for row, col in enumerate(best_cols):
            best = float(sims[row, col])
            if np.isnan(best) or best < threshold:
                results.append(MatchResult(UNKNOWN_ID, best))
            else:
                results.append(MatchResult(int(owners[col]), best))
        return results
