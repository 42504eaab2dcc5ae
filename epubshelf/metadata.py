"""Per-book metadata extraction.

:func:`extract` never raises.  A book whose archive cannot be read or parsed
still gets a record built from its file name, flagged through
:attr:`Extraction.degraded`, so one broken file never aborts a library scan.
"""

from __future__ import annotations

import datetime as _dt
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from .archive import XmlNode, open_archive, parse_xml, read_entry
from .config import CONTAINER_PATH, MAGAZINE_MARKER, PUBLIC_PREFIX
from .cover import resolve_cover
from .errors import LibraryError, MissingInternalEntry
from .models import Metadata
from .text import derive_issue_label, derive_title, sanitize, slugify_path, slugify_title, strip_root
from .toc import build_toc

__all__ = ["Extraction", "extract", "extract_metadata", "degraded_metadata"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Extraction:
    metadata: Metadata
    error: BaseException | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


def extract(absolute_path: Path | str, relative_path: str) -> Extraction:
    """Read the EPUB at *absolute_path*; *relative_path* is its scan path."""
    try:
        metadata = _extract(Path(absolute_path), relative_path)
    except (LibraryError, OSError) as exc:
        logger.warning("Failed to parse EPUB metadata for %s: %s", relative_path, exc)
        return Extraction(degraded_metadata(relative_path), error=exc)
    except Exception as exc:  # zlib/EOF errors from damaged members and the like
        logger.exception("Unexpected error reading EPUB metadata for %s", relative_path)
        return Extraction(degraded_metadata(relative_path), error=exc)
    return Extraction(metadata)


def extract_metadata(absolute_path: Path | str, relative_path: str) -> Metadata:
    return extract(absolute_path, relative_path).metadata


def degraded_metadata(relative_path: str) -> Metadata:
    """Record for a book whose archive could not be read."""
    title = _fallback_title(relative_path)
    return Metadata(
        title=title,
        file_url=_file_url(relative_path),
        file_path=relative_path,
        folder_trail=_folder_trail(relative_path),
        slug=slugify_title(title),
        file_size=0,
        last_modified=_iso(_dt.datetime.now(_dt.timezone.utc)),
        is_magazine=_is_magazine(relative_path),
    )


# ---------------------------------------------------------------------------


def _extract(path: Path, relative_path: str) -> Metadata:
    data = path.read_bytes()
    stats = path.stat()

    with open_archive(data) as archive:
        container_data = read_entry(archive, CONTAINER_PATH)
        if container_data is None:
            raise MissingInternalEntry(CONTAINER_PATH)
        container = parse_xml(container_data)

        rootfile = container.path("rootfiles", "rootfile")
        package_path = None
        if rootfile is not None:
            package_path = rootfile.get("full-path") or rootfile.get("fullPath")
        if not package_path:
            raise MissingInternalEntry("OPF rootfile")

        package_data = read_entry(archive, package_path)
        if package_data is None:
            raise MissingInternalEntry(package_path)
        package = parse_xml(package_data)
        if package.name != "package":
            package = XmlNode("package")

        info = package.first("metadata") or XmlNode("metadata")
        manifest_node = package.first("manifest")
        manifest = manifest_node.all("item") if manifest_node is not None else []
        metas = info.all("meta")

        cover_image = resolve_cover(archive, manifest, metas, package_path)
        toc = build_toc(archive, package, manifest, package_path)

    is_magazine = _is_magazine(relative_path)
    return Metadata(
        title=_first_clean(info, "title") or _fallback_title(relative_path),
        author=_first_clean(info, "creator"),
        description=_first_clean(info, "description"),
        cover_image=cover_image,
        file_url=_file_url(relative_path),
        file_path=relative_path,
        file_size=stats.st_size,
        last_modified=_iso(_dt.datetime.fromtimestamp(stats.st_mtime, _dt.timezone.utc)),
        folder_trail=_folder_trail(relative_path),
        slug=slugify_path(relative_path),
        is_magazine=is_magazine,
        issue_label=derive_issue_label(posixpath.basename(relative_path)) if is_magazine else None,
        toc=toc,
    )


def _first_clean(info: XmlNode, name: str) -> str | None:
    for node in info.all(name):
        cleaned = sanitize(node.full_text())
        if cleaned:
            return cleaned
    return None


def _fallback_title(relative_path: str) -> str:
    # a name made only of noise, e.g. "(2019).epub", still needs a title
    return derive_title(relative_path) or posixpath.splitext(posixpath.basename(relative_path))[0]


def _file_url(relative_path: str) -> str:
    return f"{PUBLIC_PREFIX}/{quote(strip_root(relative_path), safe='/')}"


def _folder_trail(relative_path: str) -> list[str]:
    return relative_path.split("/")[1:-1]


def _is_magazine(relative_path: str) -> bool:
    return MAGAZINE_MARKER in relative_path


def _iso(moment: _dt.datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
