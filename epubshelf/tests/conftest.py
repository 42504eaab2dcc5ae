"""Pytest configuration and EPUB builders for epubshelf tests."""
from __future__ import annotations

import io
import sys
import zipfile
from pathlib import Path

import pytest

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parents[2]  # directory holding the epubshelf package
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

CONTAINER_XML = """<?xml version="1.0" encoding="utf-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def package_document(metadata: str = "", manifest: str = "", spine: str = "<spine/>") -> str:
    return f"""<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    {metadata}
  </metadata>
  <manifest>
    {manifest}
  </manifest>
  {spine}
</package>
"""


def zip_bytes(files: dict[str, bytes | str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def write_epub(
    path: Path,
    *,
    opf: str | None = None,
    files: dict[str, bytes | str] | None = None,
    container: str | None = CONTAINER_XML,
) -> Path:
    """Write a minimal EPUB; ``container=None`` leaves out META-INF/container.xml."""
    entries: dict[str, bytes | str] = {"mimetype": "application/epub+zip"}
    if container is not None:
        entries["META-INF/container.xml"] = container
    if opf is not None:
        entries["OEBPS/content.opf"] = opf
    entries.update(files or {})
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(entries))
    return path


@pytest.fixture()
def make_epub():
    return write_epub


@pytest.fixture()
def make_opf():
    return package_document


@pytest.fixture()
def make_zip():
    return zip_bytes


@pytest.fixture()
def library(tmp_path: Path) -> Path:
    """``Books/`` with one well-formed novel, one broken file and some noise."""
    root = tmp_path / "Books"
    opf = package_document(
        metadata="<dc:title>My Novel</dc:title><dc:creator>Jane Doe</dc:creator>",
        manifest=(
            '<item id="img" href="images/cover.jpg" media-type="image/jpeg" properties="cover-image"/>'
            '<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>'
        ),
    )
    nav = (
        '<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops"><body>'
        '<nav epub:type="toc"><ol><li><a href="ch1.xhtml">Chapter 1</a></li></ol></nav>'
        "</body></html>"
    )
    write_epub(
        root / "Fiction" / "Novel.epub",
        opf=opf,
        files={"OEBPS/images/cover.jpg": b"\xff\xd8\xffJPEGDATA", "OEBPS/nav.xhtml": nav},
    )
    (root / "Broken.epub").write_bytes(b"this is not a zip file")
    (root / "notes.txt").write_text("ignore me")
    (root / ".hidden").mkdir()
    write_epub(root / ".hidden" / "Secret.epub", opf=opf)
    return root
