from __future__ import annotations

import unittest

from contracts.geometry import GeometryBox
from contracts.layout import ElementKind, LayoutTree, MarkupConvention, PositionedElement, TextLine
from text_layout.markup import UnsupportedLayoutFormat, parse_positioned_markup
from text_layout.module import lines_from_markup
from text_layout.reconstruct import reconstruct_document, reconstruct_line, reconstruct_page


def _single_page_lines(markup: str) -> list[TextLine]:
    pages, _ = lines_from_markup(markup)
    if len(pages) != 1:
        raise AssertionError(f"expected one page, got {len(pages)}")
    return pages[0].lines


BBOX_LAYOUT_XHTML = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
<title>votes</title>
<meta name="Producer" content="pdftotext"/>
</head>
<body>
<doc>
  <page width="612.000000" height="792.000000">
    <flow>
      <block xMin="72.000000" yMin="100.000000" xMax="300.000000" yMax="140.000000">
        <line xMin="72.000000" yMin="120.000000" xMax="180.000000" yMax="132.000000">
          <word xMin="72.000000" yMin="120.000000" xMax="110.000000" yMax="132.000000">A</word>
          <word xMin="115.000000" yMin="120.000000" xMax="180.000000" yMax="132.000000">FAVOR</word>
        </line>
        <line xMin="72.000000" yMin="100.000000" xMax="150.000000" yMax="112.000000">
          <word xMin="72.000000" yMin="100.000000" xMax="150.000000" yMax="112.000000">Resultado</word>
        </line>
        <line>
          <word xMin="200.000000" yMin="100.000000" xMax="230.000000" yMax="112.000000">Apro</word>
          <word xMin="231.000000" yMin="101.000000" xMax="260.000000" yMax="113.000000">vado</word>
        </line>
      </block>
    </flow>
  </page>
</doc>
</body>
</html>
"""


class TestLineScenarios(unittest.TestCase):
    def test_line_with_style_and_padded_text(self) -> None:
        lines = _single_page_lines(
            '<div class="line" style="left:10;top:5;width:100;height:12">  Hello   World </div>'
        )
        self.assertEqual(lines, [TextLine(box=GeometryBox(10, 5, 100, 12), text="Hello World")])

    def test_line_without_style_or_text_rebuilt_from_words(self) -> None:
        lines = _single_page_lines(
            '<div class="line">'
            '<span class="word" style="left:10;top:5;width:20;height:10">Hello</span>'
            '<span class="word" style="left:35;top:5;width:30;height:10">World</span>'
            "</div>"
        )
        self.assertEqual(lines, [TextLine(box=GeometryBox(10, 5, 55, 10), text="Hello World")])

    def test_line_with_style_but_no_text_and_no_words_is_dropped(self) -> None:
        pages, _ = lines_from_markup('<div class="line" style="left:10;top:5;width:100;height:12"></div>')
        self.assertEqual(pages[0].lines, [])
        self.assertEqual(pages[0].dropped[0]["reason"], "no_text")


class TestFallbackReconstruction(unittest.TestCase):
    def test_fallback_box_is_exact_union_of_words_with_geometry(self) -> None:
        lines = _single_page_lines(
            '<div class="line">'
            '<span class="word" style="left:40;top:8;width:10;height:4">b</span>'
            '<span class="word">nobox</span>'
            '<span class="word" style="left:12;top:6;width:5;height:20">a</span>'
            '<span class="word" style="left:30;top:2;width:25;height:3">c</span>'
            "</div>"
        )
        self.assertEqual(len(lines), 1)
        box = lines[0].box
        self.assertEqual(box.left, 12)
        self.assertEqual(box.top, 2)
        self.assertEqual(box.right, max(40 + 10, 12 + 5, 30 + 25))
        self.assertEqual(box.bottom, max(8 + 4, 6 + 20, 2 + 3))
        # Text keeps every word in document order, including the one without geometry.
        self.assertEqual(lines[0].text, "b nobox a c")

    def test_text_without_any_word_geometry_is_dropped(self) -> None:
        pages, _ = lines_from_markup(
            '<div class="line"><span class="word">orphan</span><span class="word">text</span></div>'
        )
        self.assertEqual(pages[0].lines, [])
        self.assertEqual(pages[0].dropped, [{"element_index": 1, "reason": "no_geometry"}])

    def test_own_box_is_kept_when_only_text_needs_rebuilding(self) -> None:
        # Arena built directly: the line has a valid box and no direct text; its word child
        # carries the text and a different box.
        tree = LayoutTree(
            elements=[
                PositionedElement(0, "#document", None, None, "", "", (1,)),
                PositionedElement(1, "div", ElementKind.LINE, GeometryBox(0, 0, 300, 20), "", "", (2,)),
                PositionedElement(2, "span", ElementKind.WORD, GeometryBox(5, 5, 10, 10), " Hi ", "", ()),
            ]
        )
        line, reason = reconstruct_line(tree, 1)
        self.assertIsNone(reason)
        self.assertEqual(line, TextLine(box=GeometryBox(0, 0, 300, 20), text="Hi"))

    def test_malformed_line_does_not_abort_page(self) -> None:
        lines = _single_page_lines(
            '<div class="line" style="left:1;top:1;width:abc;height:2"></div>'
            '<div class="line" style="left:0;top:50;width:10;height:10">kept</div>'
            '<div class="line"><span class="word">no geometry</span></div>'
        )
        self.assertEqual([ln.text for ln in lines], ["kept"])

    def test_deeply_nested_unclosed_tags_do_not_lose_the_page(self) -> None:
        depth = 3000
        lines = _single_page_lines(
            '<div class="line" style="left:0;top:0;width:10;height:5">'
            + "<span>x" * depth
            + "</div>"
            + '<div class="line" style="left:0;top:10;width:10;height:5">second</div>'
        )
        self.assertEqual([ln.text for ln in lines], ["x" * depth, "second"])

    def test_text_content_keeps_document_order_with_tails(self) -> None:
        tree = LayoutTree(
            elements=[
                PositionedElement(0, "#document", None, None, "a", "", (1, 3)),
                PositionedElement(1, "span", None, None, "b", "c", (2,)),
                PositionedElement(2, "i", None, None, "d", "e", ()),
                PositionedElement(3, "span", None, None, "f", "g", ()),
            ]
        )
        self.assertEqual(tree.text_content(0), "abdecfg")
        self.assertEqual(tree.text_content(1), "bde")

    def test_never_emits_empty_text(self) -> None:
        pages, _ = lines_from_markup(
            '<div class="line" style="left:0;top:0;width:1;height:1">   \n\t </div>'
            '<div class="line"><span class="word" style="left:0;top:0;width:1;height:1">  </span></div>'
            '<div class="line" style="left:0;top:9;width:1;height:1">x</div>'
        )
        self.assertEqual([ln.text for ln in pages[0].lines], ["x"])
        for ln in pages[0].lines:
            self.assertNotEqual(ln.text, "")
            self.assertGreaterEqual(ln.box.width, 0)
            self.assertGreaterEqual(ln.box.height, 0)


class TestMarkupConventions(unittest.TestCase):
    def test_bbox_layout_xhtml(self) -> None:
        doc = parse_positioned_markup(BBOX_LAYOUT_XHTML.encode("utf-8"))
        self.assertEqual(doc.convention, MarkupConvention.BBOX_LAYOUT)

        pages = reconstruct_document(doc)
        self.assertEqual(len(pages), 1)
        self.assertEqual(pages[0].page_size, (612.0, 792.0))
        self.assertEqual(
            [(ln.text, ln.box.left, ln.box.top) for ln in pages[0].lines],
            [("Resultado", 72.0, 100.0), ("Apro vado", 200.0, 100.0), ("A FAVOR", 72.0, 120.0)],
        )
        rebuilt = pages[0].lines[1].box
        self.assertEqual((rebuilt.right, rebuilt.bottom), (260.0, 113.0))

    def test_one_entry_per_page_element(self) -> None:
        markup = (
            "<doc>"
            '<page width="100" height="100"><line xMin="1" yMin="1" xMax="5" yMax="3"><word xMin="1" yMin="1" xMax="5" yMax="3">one</word></line></page>'
            '<page width="100" height="100"><line xMin="1" yMin="1" xMax="5" yMax="3"><word xMin="1" yMin="1" xMax="5" yMax="3">two</word></line></page>'
            "</doc>"
        )
        pages, convention = lines_from_markup(markup)
        self.assertEqual(convention, MarkupConvention.BBOX_LAYOUT)
        self.assertEqual([p.page_num for p in pages], [1, 2])
        self.assertEqual([[ln.text for ln in p.lines] for p in pages], [["one"], ["two"]])

    def test_monospaced_run_spans(self) -> None:
        doc = parse_positioned_markup(
            "<pre>"
            '<span class="l" style="left:5;top:20;width:50;height:8">second  run</span>'
            '<span class="l" style="left:5;top:10;width:50;height:8">first</span>'
            "</pre>"
        )
        self.assertEqual(doc.convention, MarkupConvention.RUN_SPANS)
        pages = reconstruct_document(doc)
        self.assertEqual([ln.text for ln in pages[0].lines], ["first", "second run"])

    def test_convention_is_decided_once_per_document(self) -> None:
        # Once <line> elements are present, class markers are ignored.
        doc = parse_positioned_markup(
            '<line xMin="0" yMin="0" xMax="1" yMax="1">a</line>'
            '<div class="line" style="left:0;top:5;width:1;height:1">b</div>'
        )
        self.assertEqual(doc.convention, MarkupConvention.BBOX_LAYOUT)
        self.assertEqual([ln.text for ln in reconstruct_document(doc)[0].lines], ["a"])

    def test_malformed_markup_is_read_best_effort(self) -> None:
        lines = _single_page_lines(
            "<html><body></span>"
            '<div class="line" style="left:0;top:0;width:10;height:5">caf&eacute; &amp; bar'
            '<div class="line" style="left:0;top:10;width:10;height:5">unclosed'
        )
        texts = sorted(ln.text for ln in lines)
        self.assertIn("unclosed", texts)
        self.assertTrue(any(t.startswith("café & bar") for t in texts))

    def test_text_without_markers_is_an_unsupported_format(self) -> None:
        markup = "<html><body><p>Just some text</p></body></html>"
        with self.assertRaises(UnsupportedLayoutFormat):
            lines_from_markup(markup)

        pages, convention = lines_from_markup(markup, strict_format=False)
        self.assertIsNone(convention)
        self.assertEqual(pages[0].lines, [])

    def test_blank_page_is_not_an_error(self) -> None:
        pages, _ = lines_from_markup("<html><head><title>x</title></head><body> </body></html>")
        self.assertEqual(len(pages), 1)
        self.assertEqual(pages[0].lines, [])

    def test_reconstruct_page_reports_document_order(self) -> None:
        doc = parse_positioned_markup(
            '<div class="line" style="left:0;top:9;width:1;height:1">later</div>'
            '<div class="line" style="left:0;top:1;width:1;height:1">earlier</div>'
        )
        lines, dropped = reconstruct_page(doc.tree, doc.page_roots[0])
        self.assertEqual([ln.text for ln in lines], ["later", "earlier"])
        self.assertEqual(dropped, [])


if __name__ == "__main__":
    unittest.main()
