"""Locate a book's cover image inside the archive and embed it as a data URI.

Strategies are tried in order and the first manifest item found wins:

1. ``<meta name="cover" content="ITEM-ID"/>`` (EPUB 2 convention)
2. ``<item properties="cover-image"/>`` (EPUB 3)
3. any item whose id mentions ``cover``
"""
from __future__ import annotations

import logging
import posixpath
import zipfile
from typing import Callable, Sequence

from .archive import XmlNode, entry_candidates, read_entry_base64

__all__ = ["COVER_STRATEGIES", "select_cover_item", "resolve_cover", "guess_mime_type"]

logger = logging.getLogger(__name__)

CoverStrategy = Callable[[Sequence[XmlNode], Sequence[XmlNode]], "XmlNode | None"]

DEFAULT_IMAGE_MIME = "image/jpeg"

_MIME_BY_EXT = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def _has_property(item: XmlNode, prop: str) -> bool:
    return prop in (item.get("properties") or "").split()


def _from_meta(manifest: Sequence[XmlNode], metas: Sequence[XmlNode]) -> XmlNode | None:
    for meta in metas:
        if meta.get("name") == "cover" or meta.get("property") == "cover":
            item_id = meta.get("content")
            if not item_id:
                return None
            return next((item for item in manifest if item.get("id") == item_id), None)
    return None


def _from_properties(manifest: Sequence[XmlNode], metas: Sequence[XmlNode]) -> XmlNode | None:
    return next((item for item in manifest if _has_property(item, "cover-image")), None)


def _is_image(item: XmlNode) -> bool:
    media_type = item.get("media-type") or ""
    return media_type.startswith("image/") or guess_mime_type(item.get("href")) is not None


def _from_id(manifest: Sequence[XmlNode], metas: Sequence[XmlNode]) -> XmlNode | None:
    named = [item for item in manifest if "cover" in (item.get("id") or "").lower()]
    # "cover" is also a common id for the XHTML cover page
    return next((item for item in named if _is_image(item)), named[0] if named else None)


COVER_STRATEGIES: tuple[tuple[str, CoverStrategy], ...] = (
    ("meta", _from_meta),
    ("properties", _from_properties),
    ("id", _from_id),
)


def select_cover_item(manifest: Sequence[XmlNode], metas: Sequence[XmlNode]) -> XmlNode | None:
    """Return the manifest item chosen by the first successful strategy."""
    for name, strategy in COVER_STRATEGIES:
        item = strategy(manifest, metas)
        if item is not None and item.get("href"):
            logger.debug("cover found via %s strategy: %s", name, item.get("href"))
            return item
    return None


def guess_mime_type(href: str | None) -> str | None:
    if not href:
        return None
    return _MIME_BY_EXT.get(posixpath.splitext(href)[1].lower())


def resolve_cover(
    archive: zipfile.ZipFile,
    manifest: Sequence[XmlNode],
    metas: Sequence[XmlNode],
    package_path: str,
) -> str | None:
    """Return ``data:<mime>;base64,...`` for the cover, or ``None``."""
    item = select_cover_item(manifest, metas)
    if item is None:
        return None
    href = item.get("href") or ""

    payload = None
    for candidate in entry_candidates(package_path, href):
        payload = read_entry_base64(archive, candidate)
        if payload is not None:
            break
    if payload is None:
        return None

    mime = item.get("media-type") or guess_mime_type(href) or DEFAULT_IMAGE_MIME
    return f"data:{mime};base64,{payload}"
