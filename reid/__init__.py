"""Identity matching against a gallery of reference embeddings."""

__version__ = "0.1.0"
