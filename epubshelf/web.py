"""Flask web interface for epubshelf."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterator
from urllib.parse import quote

from flask import Flask, Response, abort, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from .cache import LibraryCache, find_by_slug
from .config import CACHE_WINDOW_SECONDS, EPUB_MIMETYPE, LIBRARY_ROOT_NAME, PUBLIC_PREFIX
from .errors import InvalidRange, InvalidRequestedPath, MissingRequiredQueryParameter, UnknownSlug

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")
_CHUNK_SIZE = 64 * 1024
_TRUTHY = {"1", "true", "yes", "on"}


def resolve_library_path(root: Path, requested: str) -> Path:
    """Map a URL sub-path onto *root*; reject anything that escapes it."""
    root = root.resolve()
    try:
        candidate = (root / requested.lstrip("/")).resolve()
    except (ValueError, OSError) as exc:  # embedded NUL, symlink loop
        logger.warning("Rejected unresolvable path %r: %s", requested, exc)
        raise InvalidRequestedPath() from exc
    if not candidate.is_relative_to(root):
        logger.warning("Rejected path outside library: %s", requested)
        raise InvalidRequestedPath()
    return candidate


def parse_range(header: str, total: int) -> tuple[int, int]:
    """Return inclusive ``(start, end)`` for a single ``bytes=`` range.

    ``bytes=-N`` selects the last *N* bytes.  Anything malformed, or reaching
    past the end of the file, raises :class:`InvalidRange`.
    """
    m = _RANGE_RE.match(header.strip())
    if not m or m.groups() == ("", ""):
        raise InvalidRange(length=total)
    first, last = m.groups()
    if not first:
        suffix = int(last)
        if suffix == 0:
            raise InvalidRange(length=total)
        start, end = max(total - suffix, 0), total - 1
    else:
        start = int(first)
        end = int(last) if last else total - 1
    if start > end or end >= total:
        raise InvalidRange(length=total)
    return start, end


def _content_disposition(filename: str) -> str:
    return f"inline; filename*=UTF-8''{quote(filename, safe='')}"


def _iter_file_range(path: Path, start: int, length: int) -> Iterator[bytes]:
    with path.open("rb") as fh:
        fh.seek(start)
        remaining = length
        while remaining > 0:
            chunk = fh.read(min(_CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def create_app(
    library_root: Path | str = LIBRARY_ROOT_NAME,
    cache_ttl: float = CACHE_WINDOW_SECONDS,
) -> Flask:
    app = Flask(__name__)
    root = Path(library_root).expanduser().resolve()
    cache = LibraryCache(root, ttl=cache_ttl)
    app.config["LIBRARY_ROOT"] = root
    app.config["CACHE_TTL"] = cache_ttl
    app.extensions["library_cache"] = cache

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        response = exc.get_response()
        response.data = json.dumps({"error": exc.description, "status": exc.code})
        response.content_type = "application/json"
        return response

    @app.route("/")
    def index():
        force = request.args.get("force", "").lower() in _TRUTHY
        library = cache.get_library(force=force)
        return jsonify(library=library.to_dict())

    @app.route("/reader")
    def reader():
        slug = request.args.get("book", "").strip()
        if not slug:
            raise MissingRequiredQueryParameter("book")
        href = request.args.get("href") or None

        book = find_by_slug(cache.get_library(), slug)
        if book is None:
            # the book may have been added since the snapshot was taken
            book = find_by_slug(cache.get_library(force=True), slug)
        if book is None:
            raise UnknownSlug(slug)
        return jsonify(book=book.to_dict(), initialHref=href)

    @app.route(f"{PUBLIC_PREFIX}/<path:subpath>")
    def epub_file(subpath: str):
        path = resolve_library_path(root, subpath)
        if not path.is_file():
            abort(404, "Not found")

        total = path.stat().st_size
        range_header = request.headers.get("Range")
        if range_header:
            start, end = parse_range(range_header, total)
            length = end - start + 1
            response = Response(
                _iter_file_range(path, start, length),
                status=206,
                mimetype=EPUB_MIMETYPE,
                direct_passthrough=True,
            )
            response.headers["Content-Range"] = f"bytes {start}-{end}/{total}"
            response.headers["Content-Length"] = str(length)
        else:
            response = send_file(path, mimetype=EPUB_MIMETYPE, conditional=False)

        response.headers["Accept-Ranges"] = "bytes"
        response.headers["Content-Disposition"] = _content_disposition(path.name)
        return response

    return app
