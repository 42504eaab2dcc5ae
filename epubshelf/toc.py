"""Table of contents from either the EPUB 3 navigation document or the EPUB 2 NCX.

The navigation document (manifest item with ``properties="nav"``) wins over the
NCX referenced by ``<spine toc="...">``.  An entry without a usable title is
dropped together with its nested entries; its siblings are still read.
"""
from __future__ import annotations

import logging
import zipfile
from typing import List, Sequence

from .archive import XmlNode, entry_candidates, parse_xml, read_entry
from .errors import MalformedXml
from .models import TocNode

__all__ = ["build_toc", "parse_nav_document", "parse_ncx", "normalize_list", "normalize_nav_points"]

logger = logging.getLogger(__name__)


def _read_document(archive: zipfile.ZipFile, package_path: str, href: str) -> XmlNode | None:
    for candidate in entry_candidates(package_path, href):
        data = read_entry(archive, candidate)
        if data is None:
            continue
        try:
            return parse_xml(data)
        except MalformedXml as exc:
            # e.g. HTML entities such as &nbsp; in an XHTML nav file
            logger.warning("Unreadable navigation document %s: %s", candidate, exc)
            return None
    logger.debug("navigation entry %s not found in archive", href)
    return None


def build_toc(
    archive: zipfile.ZipFile,
    package: XmlNode,
    manifest: Sequence[XmlNode],
    package_path: str,
) -> List[TocNode] | None:
    nav_item = next((item for item in manifest if "nav" in (item.get("properties") or "").split()), None)
    if nav_item is not None and nav_item.get("href"):
        doc = _read_document(archive, package_path, nav_item.get("href"))
        return parse_nav_document(doc) if doc is not None else None

    spine = package.first("spine")
    toc_id = spine.get("toc") if spine is not None else None
    if not toc_id:
        return None
    ncx_item = next((item for item in manifest if item.get("id") == toc_id), None)
    if ncx_item is None or not ncx_item.get("href"):
        return None
    doc = _read_document(archive, package_path, ncx_item.get("href"))
    return parse_ncx(doc) if doc is not None else None


# --------------------------------------------------------------------------
# EPUB 3 navigation document
# --------------------------------------------------------------------------

def parse_nav_document(doc: XmlNode) -> List[TocNode] | None:
    # some tools wrap <nav> in extra sections, so search the whole document
    nav = doc.find("nav")
    if nav is None:
        return None
    ordered = nav.first("ol") or nav.path("div", "ol")
    if ordered is None:
        return None
    return normalize_list(ordered)


def _item_link(item: XmlNode) -> XmlNode | None:
    paragraph = item.first("p")
    candidates = (
        item.first("a"),
        paragraph.first("a") if paragraph is not None else None,
        item.path("span", "a"),
        item.path("div", "a"),
    )
    return next((link for link in candidates if link is not None), None)


def _item_title(item: XmlNode, link: XmlNode | None) -> str:
    if link is not None and link.full_text():
        return link.full_text()
    span = item.first("span")
    if span is not None and span.full_text():
        return span.full_text()
    return item.text


def normalize_list(ordered: XmlNode) -> List[TocNode]:
    nodes: List[TocNode] = []
    for item in ordered.all("li"):
        link = _item_link(item)
        title = _item_title(item, link)
        if not title:
            continue
        nested = item.first("ol")
        children = normalize_list(nested) if nested is not None else []
        nodes.append(
            TocNode(
                title=title,
                href=link.get("href") if link is not None else None,
                children=children or None,
            )
        )
    return nodes


# --------------------------------------------------------------------------
# EPUB 2 NCX
# --------------------------------------------------------------------------

def parse_ncx(doc: XmlNode) -> List[TocNode] | None:
    nav_map = doc.first("navMap") if doc.name == "ncx" else doc.find("navMap")
    if nav_map is None:
        return None
    return normalize_nav_points(nav_map.all("navPoint"))


def normalize_nav_points(points: Sequence[XmlNode]) -> List[TocNode]:
    nodes: List[TocNode] = []
    for point in points:
        label = point.first("navLabel")
        title = ""
        if label is not None:
            text = label.first("text")
            title = text.full_text() if text is not None else label.full_text()
        if not title:
            continue
        content = point.first("content")
        children = normalize_nav_points(point.all("navPoint"))
        nodes.append(
            TocNode(
                title=title,
                href=content.get("src") if content is not None else None,
                children=children or None,
            )
        )
    return nodes
