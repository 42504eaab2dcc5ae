"""Exception hierarchy.

Archive and XML failures stay inside the metadata extractor, which turns them
into degraded records.  Request-level errors subclass werkzeug's HTTP
exceptions so Flask renders them with the proper status code.
"""
from __future__ import annotations

from werkzeug.exceptions import BadRequest, NotFound, RequestedRangeNotSatisfiable

__all__ = [
    "LibraryError",
    "CorruptArchive",
    "MissingInternalEntry",
    "MalformedXml",
    "InvalidRequestedPath",
    "MissingRequiredQueryParameter",
    "UnknownSlug",
    "InvalidRange",
]


class LibraryError(RuntimeError):
    pass


class CorruptArchive(LibraryError):
    pass


class MissingInternalEntry(LibraryError):
    def __init__(self, entry: str):
        super().__init__(f"Missing {entry}")
        self.entry = entry


class MalformedXml(LibraryError):
    pass


class InvalidRequestedPath(BadRequest):
    description = "Invalid path"


class MissingRequiredQueryParameter(BadRequest):
    def __init__(self, name: str):
        super().__init__(f"Missing `{name}` query parameter")
        self.parameter = name


class UnknownSlug(NotFound):
    def __init__(self, slug: str):
        super().__init__(f'Unable to locate book "{slug}"')
        self.slug = slug


class InvalidRange(RequestedRangeNotSatisfiable):
    description = "Invalid Range"
