"""Free-text clean-up and filename-derived fallbacks.

Package documents in the wild carry HTML fragments, links and scraped
publication dates in their title/creator/description fields.  The helpers
here strip that noise; none of them perform I/O.
"""
from __future__ import annotations

import datetime as _dt
import posixpath
import re

__all__ = [
    "sanitize",
    "derive_title",
    "derive_issue_label",
    "strip_root",
    "slugify_path",
    "slugify_title",
]

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)

_TAG_RE = re.compile(r"<[^>]+>")
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_MONTH_BRACKET_RE = re.compile(r"[\[(]" + _MONTH + r"\b[^\])]*[\])]", re.IGNORECASE)
_BRACKET_RE = re.compile(r"\[[^\]]*\]|\([^)]*\)")
# "Mar 3", "March 3rd, 2021", "Sept. 14 2019"; a bare month name is left alone
_MONTH_DATE_RE = re.compile(
    r"\b" + _MONTH + r"\b\.?\s+\d{1,2}(?:st|nd|rd|th)?\b(?:,?\s*\d{4}\b)?",
    re.IGNORECASE,
)
_NUMERIC_DATE_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b")
_ISO_DATE_RE = re.compile(r"(?<!\d)\d{4}-\d{2}-\d{2}(?!\d)")
_ISSUE_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_SEPARATORS_RE = re.compile(r"[_\-]+")
_WS_RE = re.compile(r"\s+")
_SLUG_JUNK_RE = re.compile(r"[^\w/]+")
_HYPHENS_RE = re.compile(r"-+")
_EPUB_SUFFIX_RE = re.compile(r"\.epub$", re.IGNORECASE)


def _strip_brackets(value: str) -> str:
    value = _MONTH_BRACKET_RE.sub("", value)
    return _BRACKET_RE.sub("", value)


def _collapse(value: str) -> str:
    return _WS_RE.sub(" ", value).strip()


def sanitize(value: str | None) -> str | None:
    """Return *value* as plain text, or ``None`` if nothing is left."""
    if not value:
        return None
    cleaned = _TAG_RE.sub("", value)
    cleaned = _URL_RE.sub("", cleaned)
    cleaned = _strip_brackets(cleaned)
    cleaned = _MONTH_DATE_RE.sub("", cleaned)
    cleaned = _NUMERIC_DATE_RE.sub("", cleaned)
    cleaned = _collapse(cleaned)
    return cleaned or None


def derive_title(relative_path: str) -> str:
    """Human title from a file name, e.g. ``The_Economist-2024-05-04.epub``."""
    stem, _ext = posixpath.splitext(posixpath.basename(relative_path))
    title = _ISO_DATE_RE.sub("", stem)
    title = _SEPARATORS_RE.sub(" ", title)
    title = _strip_brackets(title)
    return _collapse(title)


def derive_issue_label(filename: str) -> str | None:
    """``"2024-05-04"`` in *filename* becomes ``"May 4, 2024"``."""
    match = _ISSUE_DATE_RE.search(filename)
    if not match:
        return None
    try:
        issue = _dt.date(*(int(part) for part in match.groups()))
    except ValueError:
        return None
    return f"{issue:%B} {issue.day}, {issue.year}"


def strip_root(relative_path: str) -> str:
    """Drop the library root segment from a scan-relative path."""
    _root, sep, rest = relative_path.partition("/")
    return rest if sep else relative_path


def slugify_path(relative_path: str) -> str:
    slug = _EPUB_SUFFIX_RE.sub("", strip_root(relative_path))
    slug = _SLUG_JUNK_RE.sub("-", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    return slug.lower()


def slugify_title(title: str) -> str:
    return _WS_RE.sub("-", title.lower())
