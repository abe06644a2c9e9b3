"""Immutable gallery of identities and their reference embeddings.

The gallery is assembled once through `GalleryBuilder` and frozen by
`GalleryBuilder.build()`. After that no writer exists: arrays are read-only,
containers are tuples or mapping proxies, and any number of threads may read
concurrently. Building and reading must never overlap.
"""
from __future__ import annotations

import itertools

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from reid.gallery.errors import FormatError
from reid.utils.math import squared_norm


def _freeze(vec: np.ndarray) -> np.ndarray:
    arr = np.array(vec, dtype=np.float32, copy=True).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class EmbeddingRef:
    """One reference embedding plus the id of the identity that owns it."""

    identity_id: int
    vector: np.ndarray
    squared_norm: float


@dataclass(frozen=True, eq=False)
class Identity:
    id: int
    label: str
    embeddings: Tuple[np.ndarray, ...] = ()
    squared_norms: Tuple[float, ...] = ()


class Gallery:
    """Read-only identity gallery.

    Identities keep manifest order; `identity(id)` goes through an explicit
    id -> Identity mapping so ids need not equal storage positions. The flat
    arena `refs` lists every embedding in identity order with a back-reference
    to its owner; `matrix` and `squared_norms` are the same data stacked for
    vectorized matching.
    """

    def __init__(self, identities: Sequence[Identity], refs: Sequence[EmbeddingRef]):
        self._identities: Tuple[Identity, ...] = tuple(identities)
        self._by_id: Mapping[int, Identity] = MappingProxyType({ident.id: ident for ident in self._identities})
        self._refs: Tuple[EmbeddingRef, ...] = tuple(refs)

        if self._refs:
            matrix = np.stack([r.vector for r in self._refs], axis=0).astype(np.float32, copy=False)
        else:
            matrix = np.zeros((0, 0), dtype=np.float32)
        norms = np.asarray([r.squared_norm for r in self._refs], dtype=np.float32)
        owners = np.asarray([r.identity_id for r in self._refs], dtype=np.int64)
        for arr in (matrix, norms, owners):
            arr.flags.writeable = False
        self._matrix = matrix
        self._squared_norms = norms
        self._owner_ids = owners

    @property
    def identities(self) -> Tuple[Identity, ...]:
        return self._identities

    @property
    def refs(self) -> Tuple[EmbeddingRef, ...]:
        return self._refs

    @property
    def flat_index(self) -> Tuple[int, ...]:
        """Owning identity id of every embedding, in flat order."""
        return tuple(int(i) for i in self._owner_ids)

    @property
    def matrix(self) -> np.ndarray:
        """(N, D) float32 read-only matrix of reference embeddings."""
        return self._matrix

    @property
    def squared_norms(self) -> np.ndarray:
        return self._squared_norms

    @property
    def owner_ids(self) -> np.ndarray:
        return self._owner_ids

    @property
    def dim(self) -> int:
        return int(self._matrix.shape[1]) if self._refs else 0

    @property
    def num_embeddings(self) -> int:
        return len(self._refs)

    def identity(self, identity_id: int) -> Optional[Identity]:
        return self._by_id.get(identity_id)

    def size(self) -> int:
        return len(self._identities)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"Gallery(identities={self.size()}, embeddings={self.num_embeddings}, dim={self.dim})"


def sequential_ids() -> Callable[[], int]:
    """Default id policy: 0, 1, 2, ... in insertion order."""
    return itertools.count().__next__


@dataclass
class GalleryBuilder:
    """Mutable staging area used only while a gallery is being loaded."""

    id_policy: Callable[[], int] = field(default_factory=sequential_ids)
    _identities: List[Identity] = field(default_factory=list, init=False)
    _refs: List[EmbeddingRef] = field(default_factory=list, init=False)
    _ids: Dict[int, str] = field(default_factory=dict, init=False)

    def next_id(self) -> int:
        try:
            identity_id = int(self.id_policy())
        except StopIteration as e:
            raise FormatError(f"Id policy exhausted after {len(self._ids)} identities") from e
        if identity_id < 0:
            raise FormatError(f"Identity ids must be non-negative, got {identity_id}")
        if identity_id in self._ids:
            raise FormatError(f"Identity id {identity_id} already assigned to {self._ids[identity_id]!r}")
        return identity_id

    def add_identity(self, identity_id: int, label: str, embeddings: Sequence[np.ndarray]) -> Identity:
        """Finalize one identity and append its embeddings to the flat arena."""
        vectors = tuple(_freeze(e) for e in embeddings)
        norms = tuple(squared_norm(v) for v in vectors)
        ident = Identity(id=identity_id, label=str(label), embeddings=vectors, squared_norms=norms)
        self._identities.append(ident)
        self._ids[identity_id] = ident.label
        for vec, norm in zip(vectors, norms):
            self._refs.append(EmbeddingRef(identity_id=identity_id, vector=vec, squared_norm=norm))
        return ident

    def build(self) -> Gallery:
        return Gallery(self._identities, self._refs)
