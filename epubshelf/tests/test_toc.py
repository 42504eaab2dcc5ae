from epubshelf.archive import open_archive, parse_xml
from epubshelf.models import TocNode
from epubshelf.toc import build_toc, parse_nav_document, parse_ncx

OPF_PATH = "OEBPS/content.opf"

NAV_XHTML = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><section>
<nav epub:type="toc"><h1>Contents</h1><ol>
  <li><a href="ch1.xhtml">Chapter 1</a>
    <ol><li><a href="ch1.xhtml#s1">Section <em>1.1</em></a></li></ol>
  </li>
  <li><p><a href="ch2.xhtml">Chapter 2</a></p></li>
  <li><span>Part Three</span>
    <ol><li><span><a href="ch3.xhtml">Chapter 3</a></span></li></ol>
  </li>
  <li><a href="blank.xhtml"></a><ol><li><a href="lost.xhtml">Lost</a></li></ol></li>
  <li>Appendix</li>
</ol></nav>
<nav epub:type="landmarks"><ol><li><a href="cover.xhtml">Cover</a></li></ol></nav>
</section></body></html>
"""

NCX = """<?xml version="1.0" encoding="utf-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <navMap>
    <navPoint id="p1" playOrder="1">
      <navLabel><text>Legacy One</text></navLabel>
      <content src="one.xhtml"/>
      <navPoint id="p1a" playOrder="2">
        <navLabel><text>Legacy One A</text></navLabel>
        <content src="one.xhtml#a"/>
      </navPoint>
    </navPoint>
    <navPoint id="p2" playOrder="3">
      <navLabel><text>  </text></navLabel>
      <content src="skip.xhtml"/>
    </navPoint>
    <navPoint id="p3" playOrder="4">
      <navLabel><text>Legacy Two</text></navLabel>
      <content src="two.xhtml"/>
    </navPoint>
  </navMap>
</ncx>
"""


def _package(manifest: str, spine: str, make_opf):
    return parse_xml(make_opf(manifest=manifest, spine=spine))


def test_nav_document_normalisation():
    toc = parse_nav_document(parse_xml(NAV_XHTML))
    assert toc == [
        TocNode("Chapter 1", "ch1.xhtml", [TocNode("Section 1.1", "ch1.xhtml#s1")]),
        TocNode("Chapter 2", "ch2.xhtml"),
        TocNode("Part Three", None, [TocNode("Chapter 3", "ch3.xhtml")]),
        TocNode("Appendix"),
    ]


def test_nav_document_without_nav_element():
    assert parse_nav_document(parse_xml("<html><body><ol><li>x</li></ol></body></html>")) is None


def test_nav_list_inside_div():
    doc = parse_xml('<html><body><nav><div><ol><li><a href="a.xhtml">A</a></li></ol></div></nav></body></html>')
    assert parse_nav_document(doc) == [TocNode("A", "a.xhtml")]


def test_ncx_normalisation():
    assert parse_ncx(parse_xml(NCX)) == [
        TocNode("Legacy One", "one.xhtml", [TocNode("Legacy One A", "one.xhtml#a")]),
        TocNode("Legacy Two", "two.xhtml"),
    ]


def test_nav_is_preferred_over_ncx(make_opf, make_zip):
    manifest = (
        '<item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>'
        '<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>'
    )
    package = _package(manifest, '<spine toc="ncx"/>', make_opf)
    data = make_zip({"OEBPS/nav.xhtml": NAV_XHTML, "OEBPS/toc.ncx": NCX})
    with open_archive(data) as archive:
        toc = build_toc(archive, package, package.first("manifest").all("item"), OPF_PATH)
    assert [node.title for node in toc] == ["Chapter 1", "Chapter 2", "Part Three", "Appendix"]


def test_ncx_used_without_nav(make_opf, make_zip):
    manifest = '<item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>'
    package = _package(manifest, '<spine toc="ncx"/>', make_opf)
    with open_archive(make_zip({"OEBPS/toc.ncx": NCX})) as archive:
        toc = build_toc(archive, package, package.first("manifest").all("item"), OPF_PATH)
    assert [node.title for node in toc] == ["Legacy One", "Legacy Two"]


def test_no_toc_sources(make_opf, make_zip):
    package = _package('<item id="a" href="a.xhtml"/>', "<spine/>", make_opf)
    with open_archive(make_zip({"OEBPS/a.xhtml": "<html/>"})) as archive:
        assert build_toc(archive, package, package.first("manifest").all("item"), OPF_PATH) is None


def test_missing_nav_entry_gives_none(make_opf, make_zip):
    package = _package('<item id="nav" href="nav.xhtml" properties="nav"/>', "<spine/>", make_opf)
    with open_archive(make_zip({"OEBPS/other.xhtml": "<html/>"})) as archive:
        assert build_toc(archive, package, package.first("manifest").all("item"), OPF_PATH) is None


def test_toc_node_dict_omits_empty_fields():
    assert TocNode("A").to_dict() == {"title": "A"}
    assert TocNode("A", "a.xhtml", [TocNode("B")]).to_dict() == {
        "title": "A",
        "href": "a.xhtml",
        "children": [{"title": "B"}],
    }
