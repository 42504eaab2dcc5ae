"""
Reading EPUB containers and their XML documents.

An EPUB is a plain ZIP archive (standard library ``zipfile``).  Internal
documents are parsed with ``xml.etree.ElementTree`` and converted into a small
generic tree, :class:`XmlNode`, whose element and attribute names have their
namespace dropped.  Publisher tooling is inconsistent about prefixes
(``dc:title`` vs ``title``, ``opf:role``, default namespaces on ``nav``), so
all lookups downstream go by local name only.
"""
from __future__ import annotations

import base64
import io
import posixpath
import re
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from typing import Iterator
from urllib.parse import unquote

from .errors import CorruptArchive, MalformedXml

__all__ = [
    "XmlNode",
    "open_archive",
    "read_entry",
    "read_entry_base64",
    "parse_xml",
    "resolve_href",
    "entry_candidates",
]

_WS_RE = re.compile(r"\s+")


def _local(name: str) -> str:
    # "{http://purl.org/dc/elements/1.1/}title" and "dc:title" both become "title"
    return name.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def _collapse(value: str) -> str:
    return _WS_RE.sub(" ", value).strip()


@dataclass(slots=True)
class XmlNode:
    """Element with namespace-free name, attributes, direct text and children."""

    name: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: list["XmlNode"] = field(default_factory=list)
    head: str = ""  # raw text before the first child
    tail: str = ""  # raw text after the closing tag

    def get(self, attr: str, default: str | None = None) -> str | None:
        return self.attrs.get(attr, default)

    def all(self, name: str) -> list["XmlNode"]:
        """Direct children called *name*; always a list, possibly empty."""
        return [child for child in self.children if child.name == name]

    def first(self, name: str) -> "XmlNode | None":
        for child in self.children:
            if child.name == name:
                return child
        return None

    def path(self, *names: str) -> "XmlNode | None":
        """Descend through the first child matching each of *names*."""
        node: XmlNode | None = self
        for name in names:
            if node is None:
                return None
            node = node.first(name)
        return node

    def iter(self) -> Iterator["XmlNode"]:
        """Depth-first, document order, self first."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find(self, name: str) -> "XmlNode | None":
        """First element called *name* anywhere in this subtree."""
        for node in self.iter():
            if node.name == name:
                return node
        return None

    def full_text(self) -> str:
        """All text of the subtree in document order, whitespace-collapsed."""
        return _collapse(self._raw_text())

    def _raw_text(self) -> str:
        if not self.children and not self.head:
            return self.text  # node built by hand rather than parsed
        parts = [self.head]
        for child in self.children:
            parts.append(child._raw_text())
            parts.append(child.tail)
        return "".join(parts)


def _convert(elem: ET.Element) -> XmlNode:
    texts = [elem.text or ""]
    children = []
    for child in elem:
        children.append(_convert(child))
        texts.append(child.tail or "")
    return XmlNode(
        name=_local(elem.tag),
        attrs={_local(k): v for k, v in elem.attrib.items()},
        text=_collapse("".join(texts)),
        children=children,
        head=elem.text or "",
        tail=elem.tail or "",
    )


def parse_xml(source: str | bytes) -> XmlNode:
    """Parse *source* into an :class:`XmlNode` tree rooted at the document element.

    Raw bytes are handed to the parser as-is so the declared ``encoding`` is honoured.
    """
    if isinstance(source, str):
        source = source.lstrip("\ufeff")
    try:
        root = ET.fromstring(source)
    except (ET.ParseError, ValueError) as exc:  # ValueError: unsupported declared encoding
        raise MalformedXml(str(exc)) from exc
    return _convert(root)


def open_archive(data: bytes) -> zipfile.ZipFile:
    """Open an in-memory archive; raise :class:`CorruptArchive` if it is not a ZIP."""
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise CorruptArchive(str(exc)) from exc


def read_entry(archive: zipfile.ZipFile, internal_path: str) -> bytes | None:
    """Raw member bytes, or ``None`` if the archive has no such member."""
    try:
        return archive.read(internal_path)
    except KeyError:
        return None
    except zipfile.BadZipFile as exc:  # bad CRC, truncated member
        raise CorruptArchive(f"{internal_path}: {exc}") from exc


def read_entry_base64(archive: zipfile.ZipFile, internal_path: str) -> str | None:
    data = read_entry(archive, internal_path)
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def resolve_href(document_path: str, href: str) -> str:
    """Resolve *href* relative to the directory holding *document_path*.

    >>> resolve_href("OEBPS/content.opf", "../images/cover.jpg#x")
    'images/cover.jpg'
    """
    href = href.split("#", 1)[0]
    base = posixpath.dirname(document_path)
    joined = posixpath.normpath(posixpath.join(base, href))
    return joined.lstrip("/")


def entry_candidates(document_path: str, href: str) -> list[str]:
    """Resolved path for *href*, plus its URL-unquoted form when that differs."""
    resolved = resolve_href(document_path, href)
    unquoted = resolve_href(document_path, unquote(href))
    return [resolved] if unquoted == resolved else [resolved, unquoted]
