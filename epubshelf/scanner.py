"""
Recursive walk of the library directory.

Layout example::

    Books/
        Fiction/Novel.epub
        Magazines/The Economist/The_Economist-2024-05-04.epub
        notes.txt          (ignored: not an .epub)
        .trash/            (ignored: hidden)

Each folder becomes a :class:`~epubshelf.models.Folder`, each ``.epub`` file a
:class:`~epubshelf.models.Book` carrying the extracted metadata.  Paths are
slash-separated and start with the root folder's own name (``Books/...``).
"""
from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import Callable, List

from .config import EPUB_EXTENSION, HIDDEN_PREFIX
from .metadata import extract_metadata
from .models import Book, Folder, LibraryNode, Metadata

__all__ = ["scan_directory", "scan_library", "sort_key"]

logger = logging.getLogger(__name__)

Extractor = Callable[[str, str], Metadata]


def sort_key(node: LibraryNode) -> tuple[int, str, str]:
    """Folders first, then case-insensitive name; raw name breaks ties."""
    return (0 if isinstance(node, Folder) else 1, node.name.casefold(), node.name)


def _inside(path: str, root: Path) -> bool:
    try:
        return Path(path).resolve().is_relative_to(root)
    except (OSError, RuntimeError):
        return False


def scan_directory(
    absolute_path: Path | str,
    relative_path: str,
    extractor: Extractor = extract_metadata,
    root: Path | None = None,
) -> Folder:
    """Return the folder tree under *absolute_path*; never raises.

    Symlinked files pointing outside *root* (default: *absolute_path*) are left
    out, since they could not be delivered.
    """
    absolute_path = Path(absolute_path)
    if root is None:
        root = absolute_path.resolve()
    children: List[LibraryNode] = []

    try:
        with os.scandir(absolute_path) as it:
            entries = list(it)
    except OSError as exc:
        logger.error("Unable to read directory %s: %s", absolute_path, exc)
        entries = []

    for entry in entries:
        if entry.name.startswith(HIDDEN_PREFIX):
            continue
        child_rel = posixpath.join(relative_path, entry.name)
        try:
            # symlinked directories are not followed, which rules out cycles
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file()
        except OSError as exc:
            logger.error("Unable to stat %s: %s", entry.path, exc)
            continue

        if is_dir:
            children.append(scan_directory(entry.path, child_rel, extractor, root))
        elif is_file and entry.name.lower().endswith(EPUB_EXTENSION):
            if entry.is_symlink() and not _inside(entry.path, root):
                logger.warning("Skipping %s: link target is outside the library", entry.path)
                continue
            children.append(Book(name=entry.name, path=child_rel, metadata=extractor(entry.path, child_rel)))

    children.sort(key=sort_key)
    return Folder(name=absolute_path.name, path=relative_path, children=children)


def scan_library(root: Path | str, extractor: Extractor = extract_metadata) -> Folder:
    """Scan *root*; the tree is named after the root directory itself."""
    root = Path(root).expanduser().resolve()
    logger.info("Scanning library %s", root)
    library = scan_directory(root, root.name, extractor)
    logger.info("Scan of %s finished: %d books", root, sum(1 for _ in library.books()))
    return library
