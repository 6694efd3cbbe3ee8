from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser

from contracts.geometry import GeometryBox
from contracts.layout import (
    ElementKind,
    LayoutDocument,
    LayoutTree,
    MarkupConvention,
    PositionedElement,
)

from .style import box_from_edge_attributes, parse_style_box

logger = logging.getLogger(__name__)

ROOT_TAG = "#document"

# HTML elements that never have an end tag.
_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)
_NON_BODY_TAGS = frozenset({"head", "title", "script", "style"})


class UnsupportedLayoutFormat(ValueError):
    """The markup carries text but none of the known line/word marker conventions."""


@dataclass(slots=True)
class _RawNode:
    tag: str
    attrs: dict[str, str | None]
    text: str = ""
    tail: str = ""
    children: list[int] = field(default_factory=list)

    def class_attr(self) -> str:
        return (self.attrs.get("class") or "").lower()


class _ArenaBuilder(HTMLParser):
    """
    Tolerant HTML/XHTML reader that records elements in document order.

    Unclosed elements are closed at EOF; stray end tags are ignored; an end tag closes
    any elements left open inside it.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.nodes: list[_RawNode] = [_RawNode(tag=ROOT_TAG, attrs={})]
        self._stack: list[int] = [0]
        self._last_closed: int | None = None
        self._open_non_body = 0  # open <head>/<title>/<script>/<style> elements on the stack
        self.has_body_text = False

    def _open(self, tag: str, attrs: list[tuple[str, str | None]]) -> int:
        idx = len(self.nodes)
        self.nodes.append(_RawNode(tag=tag, attrs=dict(attrs)))
        self.nodes[self._stack[-1]].children.append(idx)
        self._last_closed = None
        return idx

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        idx = self._open(tag, attrs)
        if tag in _VOID_TAGS:
            self._last_closed = idx
        else:
            self._stack.append(idx)
            if tag in _NON_BODY_TAGS:
                self._open_non_body += 1

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._last_closed = self._open(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        for pos in range(len(self._stack) - 1, 0, -1):
            if self.nodes[self._stack[pos]].tag == tag:
                self._last_closed = self._stack[pos]
                self._open_non_body -= sum(1 for i in self._stack[pos:] if self.nodes[i].tag in _NON_BODY_TAGS)
                del self._stack[pos:]
                return
        # Stray end tag: no open element with this name.

    def handle_data(self, data: str) -> None:
        if data.strip() and self._open_non_body == 0:
            self.has_body_text = True
        if self._last_closed is not None:
            self.nodes[self._last_closed].tail += data
        else:
            self.nodes[self._stack[-1]].text += data


def _has_class_token(node: _RawNode, token: str) -> bool:
    return token in node.class_attr().split()


def detect_convention(nodes: list[_RawNode]) -> MarkupConvention | None:
    """
    Decide, for the whole document, which line/word marker convention it uses.
    """

    if any(n.tag in ("line", "word") for n in nodes):
        return MarkupConvention.BBOX_LAYOUT
    if any("line" in n.class_attr() for n in nodes):
        return MarkupConvention.CLASS_MARKERS
    if any(n.tag == "span" and _has_class_token(n, "l") for n in nodes):
        return MarkupConvention.RUN_SPANS
    return None


def _classify(
    node: _RawNode, convention: MarkupConvention | None
) -> tuple[ElementKind | None, GeometryBox | None]:
    if convention == MarkupConvention.BBOX_LAYOUT:
        if node.tag == "line":
            return ElementKind.LINE, box_from_edge_attributes(node.attrs)
        if node.tag == "word":
            return ElementKind.WORD, box_from_edge_attributes(node.attrs)
        return None, None

    if convention == MarkupConvention.CLASS_MARKERS:
        cls = node.class_attr()
        if "line" in cls:
            return ElementKind.LINE, parse_style_box(node.attrs.get("style"))
        if "word" in cls:
            return ElementKind.WORD, parse_style_box(node.attrs.get("style"))
        return None, None

    if convention == MarkupConvention.RUN_SPANS:
        if node.tag == "span" and _has_class_token(node, "l"):
            return ElementKind.LINE, parse_style_box(node.attrs.get("style"))
        if "word" in node.class_attr():
            return ElementKind.WORD, parse_style_box(node.attrs.get("style"))
        return None, None

    return None, None


def _page_size(node: _RawNode) -> tuple[float, float] | None:
    try:
        w = float((node.attrs.get("width") or "").strip())
        h = float((node.attrs.get("height") or "").strip())
    except ValueError:
        return None
    return (w, h)


def parse_positioned_markup(data: bytes | str, *, encoding: str = "utf-8") -> LayoutDocument:
    """
    Parse positioned markup (e.g. `pdftotext -bbox-layout` XHTML) into an arena tree.

    Malformed markup is read best-effort; undecodable bytes are replaced.
    """

    if isinstance(data, bytes):
        data = data.decode(encoding, errors="replace")

    builder = _ArenaBuilder()
    builder.feed(data)
    builder.close()

    nodes = builder.nodes
    convention = detect_convention(nodes)

    elements: list[PositionedElement] = []
    page_roots: list[int] = []
    page_sizes: dict[int, tuple[float, float]] = {}
    for idx, node in enumerate(nodes):
        kind, box = _classify(node, convention)
        elements.append(
            PositionedElement(
                index=idx,
                tag=node.tag,
                kind=kind,
                box=box,
                text=node.text,
                tail=node.tail,
                children=tuple(node.children),
            )
        )
        if node.tag == "page":
            page_roots.append(idx)
            size = _page_size(node)
            if size is not None:
                page_sizes[idx] = size

    logger.debug(
        "parsed positioned markup: elements=%d convention=%s pages=%d",
        len(elements),
        convention.value if convention else None,
        len(page_roots) or 1,
    )

    return LayoutDocument(
        tree=LayoutTree(elements=elements, root=0),
        convention=convention,
        page_roots=page_roots or [0],
        page_sizes=page_sizes,
        has_body_text=builder.has_body_text,
    )
