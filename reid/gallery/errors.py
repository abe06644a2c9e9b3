from __future__ import annotations


class GalleryError(Exception):
    """Base error for gallery loading.

    Carries a (domain, code, message) triple so pipeline hosts can forward it to
    their own error channel unchanged.
    """

    domain = "resource"
    code = "failed"

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def as_tuple(self):
        return self.domain, self.code, self.message

    def __str__(self) -> str:
        return f"[{self.domain}/{self.code}] {self.message}"


class ResourceNotFoundError(GalleryError):
    code = "not_found"


class FormatError(GalleryError):
    code = "settings"


class ParseError(FormatError):
    """The manifest is not a well-formed JSON document."""

    code = "parse"


class DataError(GalleryError):
    domain = "data"
    code = "invalid"


class GalleryIOError(GalleryError):
    code = "read"
