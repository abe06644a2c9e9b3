"""Embeddings gallery building blocks (loader/store/matcher/labels)."""

from reid.gallery.errors import (
    DataError,
    FormatError,
    GalleryError,
    GalleryIOError,
    ParseError,
    ResourceNotFoundError,
)
from reid.gallery.identifier import EmbeddingsIdentifier
from reid.gallery.labels import LabelResolver
from reid.gallery.loader import LoadResult, load_gallery, read_feature_file
from reid.gallery.matcher import CosineMatcher, MatcherConfig, MatchResult
from reid.gallery.store import EmbeddingRef, Gallery, GalleryBuilder, Identity

__all__ = [
    "CosineMatcher",
    "DataError",
    "EmbeddingRef",
    "EmbeddingsIdentifier",
    "FormatError",
    "Gallery",
    "GalleryBuilder",
    "GalleryError",
    "GalleryIOError",
    "Identity",
    "LabelResolver",
    "LoadResult",
    "MatchResult",
    "MatcherConfig",
    "ParseError",
    "ResourceNotFoundError",
    "load_gallery",
    "read_feature_file",
]
