from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from .geometry import GeometryBox


class ElementKind(str, Enum):
    LINE = "line"
    WORD = "word"


class MarkupConvention(str, Enum):
    """
    How a positioned-markup document marks line/word granularity.

    Detected once per document, never per element.
    """

    BBOX_LAYOUT = "bbox_layout"  # <line>/<word> elements with xMin/yMin/xMax/yMax
    CLASS_MARKERS = "class_markers"  # class contains "line"/"word"; geometry in style=""
    RUN_SPANS = "run_spans"  # <span class="l"> runs annotated with their own style box


@dataclass(frozen=True, slots=True)
class PositionedElement:
    """
    Arena node. `children` are indices into the owning LayoutTree.

    `text` is the character data before the first child; `tail` is the character data
    following this element inside its parent.
    """

    index: int
    tag: str
    kind: ElementKind | None
    box: GeometryBox | None
    text: str
    tail: str
    children: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class LayoutTree:
    elements: list[PositionedElement]
    root: int = 0

    def __getitem__(self, index: int) -> PositionedElement:
        return self.elements[index]

    def __len__(self) -> int:
        return len(self.elements)

    def descendants(self, index: int) -> Iterator[int]:
        """Descendant indices in document order (pre-order), excluding `index` itself."""

        stack = list(reversed(self.elements[index].children))
        while stack:
            i = stack.pop()
            yield i
            stack.extend(reversed(self.elements[i].children))

    def text_content(self, index: int) -> str:
        """Full character data under `index` in document order; safe for arbitrarily deep nesting."""

        parts: list[str] = []
        stack: list[int | str] = [index]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue
            el = self.elements[item]
            parts.append(el.text)
            for c in reversed(el.children):
                stack.append(self.elements[c].tail)
                stack.append(c)
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class LayoutDocument:
    tree: LayoutTree
    convention: MarkupConvention | None
    page_roots: list[int]
    page_sizes: dict[int, tuple[float, float]] = field(default_factory=dict)  # page root -> (w, h)
    has_body_text: bool = False  # any non-whitespace text outside <head>/<script>/<style>


@dataclass(frozen=True, slots=True)
class TextLine:
    box: GeometryBox
    text: str  # whitespace-collapsed, trimmed, never empty

    def __post_init__(self) -> None:
        if self.text == "":
            raise ValueError("TextLine.text must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return {"box": self.box.to_dict(), "text": self.text}


@dataclass(frozen=True, slots=True)
class PageLines:
    page_num: int  # 1-indexed
    lines: list[TextLine]
    dropped: list[dict[str, Any]]  # [{"element_index": int, "reason": str}]
    page_size: tuple[float, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_num": self.page_num,
            "lines": [ln.to_dict() for ln in self.lines],
            "dropped": [dict(d) for d in self.dropped],
            "page_size": (
                None
                if self.page_size is None
                else {"width": self.page_size[0], "height": self.page_size[1]}
            ),
        }
