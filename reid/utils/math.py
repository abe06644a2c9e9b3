from __future__ import annotations

import numpy as np

from reid.config import SIMILARITY_EPS


def squared_norm(vec: np.ndarray) -> float:
    """Dot product of a 1D vector with itself, accumulated in float32."""
    arr = np.asarray(vec, dtype=np.float32).reshape(-1)
    return float(np.dot(arr, arr))


def cosine_similarity_matrix(
    queries: np.ndarray,
    references: np.ndarray,
    reference_sq_norms: np.ndarray,
    eps: float = SIMILARITY_EPS,
) -> np.ndarray:
    """Row-wise cosine similarity between (Q, D) queries and (N, D) references.

    `reference_sq_norms` holds the precomputed squared norm of every reference row.
    Returns a (Q, N) float32 matrix.
    """
    q = np.asarray(queries, dtype=np.float32)
    r = np.asarray(references, dtype=np.float32)
    if q.ndim != 2 or r.ndim != 2:
        raise ValueError(f"Expected 2D inputs, got ndim={q.ndim} and ndim={r.ndim}")
    q_sq = np.einsum("ij,ij->i", q, q).astype(np.float32, copy=False)
    xy = q @ r.T
    denom = np.sqrt(q_sq[:, None] * np.asarray(reference_sq_norms, dtype=np.float32)[None, :])
    return (xy / (denom + np.float32(eps))).astype(np.float32, copy=False)
