"""epubshelf package - browsable index of an EPUB library directory.

This package provides:
    • scan_library – walk a directory tree and extract per-book metadata.
    • LibraryCache – time-windowed snapshot of the scanned tree.
    • find_by_slug – resolve a book from its URL slug.
    • Flask web application (epubshelf.web) and CLI utilities (epubshelf.cli, Click).

The scanning core has no web dependencies, which keeps it easy to test.
"""

__all__ = [
    "LibraryCache",
    "find_by_slug",
    "scan_library",
]

from .cache import LibraryCache, find_by_slug  # noqa: E402
from .scanner import scan_library  # noqa: E402
