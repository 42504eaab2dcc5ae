"""
Time-windowed snapshot of the scanned library, plus slug lookup.

A :class:`LibraryCache` holds at most one complete tree together with the
moment it was built.  Refreshes always rescan the whole library and replace
the ``(tree, timestamp)`` pair in a single assignment, so a concurrent reader
sees either the old tree or the new one.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from pathlib import Path
from typing import Callable, Optional

from .config import CACHE_WINDOW_SECONDS
from .models import Book, Folder
from .scanner import scan_library

__all__ = ["LibraryCache", "find_by_slug"]

logger = logging.getLogger(__name__)


class LibraryCache:
    """Cached library tree for *root*.

    Parameters
    ----------
    root: str | Path
        Library directory to scan.
    ttl: float, default 60
        Seconds a snapshot stays fresh.
    clock: callable, default ``time.monotonic``
        Source of the current time, replaceable in tests.
    scanner: callable, default :func:`~epubshelf.scanner.scan_library`
        Builds a fresh tree from *root*.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        ttl: float = CACHE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        scanner: Callable[[Path], Folder] = scan_library,
    ):
        self.root = Path(root).expanduser()
        self.ttl = ttl
        self._clock = clock
        self._scanner = scanner
        self._snapshot: Optional[tuple[Folder, float]] = None
        self._refresh_lock = threading.Lock()

    def get_library(self, force: bool = False) -> Folder:
        """Return the cached tree, rescanning when stale, empty or *force* is set."""
        snapshot = self._snapshot
        if snapshot is not None and not force and self._is_fresh(snapshot):
            return snapshot[0]

        with self._refresh_lock:
            # another caller may have refreshed while we waited
            snapshot = self._snapshot
            if snapshot is not None and not force and self._is_fresh(snapshot):
                return snapshot[0]
            return self._rescan()

    def _rescan(self) -> Folder:
        library = self._scanner(self.root)
        self._snapshot = (library, self._clock())
        logger.debug("library snapshot replaced for %s", self.root)
        return library

    def invalidate(self) -> None:
        self._snapshot = None

    @property
    def snapshot_age(self) -> float | None:
        snapshot = self._snapshot
        return None if snapshot is None else self._clock() - snapshot[1]

    def _is_fresh(self, snapshot: tuple[Folder, float]) -> bool:
        return self._clock() - snapshot[1] < self.ttl


def find_by_slug(root: Folder, slug: str | None) -> Book | None:
    """Breadth-first search for the first book whose slug equals *slug* (case-insensitive)."""
    if not slug:
        return None
    wanted = slug.lower()
    queue = deque(root.children)
    while queue:
        node = queue.popleft()
        if isinstance(node, Book):
            if node.metadata.slug.lower() == wanted:
                return node
        elif isinstance(node, Folder):
            queue.extend(node.children)
    return None
