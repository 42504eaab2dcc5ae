"""Fixed locations and defaults shared by the scanner, cache and web layer."""
from __future__ import annotations

LIBRARY_ROOT_NAME = "Books"

# URL prefix under which raw .epub files are delivered
PUBLIC_PREFIX = "/EPUB"

CACHE_WINDOW_SECONDS = 60.0

EPUB_EXTENSION = ".epub"
EPUB_MIMETYPE = "application/epub+zip"

CONTAINER_PATH = "META-INF/container.xml"

# books below this folder are periodical issues
MAGAZINE_MARKER = "Magazines/The Economist"

HIDDEN_PREFIX = "."
