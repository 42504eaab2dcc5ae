"""In-memory library tree produced by a scan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, List


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(slots=True)
class TocNode:
    title: str
    href: str | None = None
    children: List["TocNode"] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "title": self.title,
                "href": self.href,
                "children": [c.to_dict() for c in self.children] if self.children else None,
            }
        )


@dataclass(slots=True)
class Metadata:
    title: str
    file_url: str
    file_path: str
    folder_trail: List[str]
    slug: str
    file_size: int = 0
    last_modified: str = ""  # ISO-8601
    author: str | None = None
    description: str | None = None
    cover_image: str | None = None  # data: URI
    is_magazine: bool = False
    issue_label: str | None = None
    toc: List[TocNode] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "title": self.title,
                "author": self.author,
                "description": self.description,
                "coverImage": self.cover_image,
                "fileUrl": self.file_url,
                "filePath": self.file_path,
                "fileSize": self.file_size,
                "lastModified": self.last_modified,
                "folderTrail": list(self.folder_trail),
                "slug": self.slug,
                "isMagazine": self.is_magazine,
                "issueLabel": self.issue_label,
                "toc": [node.to_dict() for node in self.toc] if self.toc is not None else None,
            }
        )


@dataclass(slots=True)
class LibraryNode:
    name: str
    path: str  # relative to the library's parent, root segment included

    kind: ClassVar[str] = "node"

    def to_dict(self) -> dict[str, Any]:  # pragma: no cover
        raise NotImplementedError


@dataclass(slots=True)
class Book(LibraryNode):
    metadata: Metadata

    kind: ClassVar[str] = "epub"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "name": self.name, "path": self.path, "metadata": self.metadata.to_dict()}


@dataclass(slots=True)
class Folder(LibraryNode):
    children: List[LibraryNode] = field(default_factory=list)

    kind: ClassVar[str] = "folder"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }

    def walk(self) -> Iterator[LibraryNode]:
        """Yield every descendant node, depth-first."""
        for child in self.children:
            yield child
            if isinstance(child, Folder):
                yield from child.walk()

    def books(self) -> Iterator[Book]:
        return (node for node in self.walk() if isinstance(node, Book))
