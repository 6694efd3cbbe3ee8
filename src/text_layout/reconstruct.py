from __future__ import annotations

import logging
import re
from typing import Any

from contracts.geometry import GeometryBox
from contracts.layout import ElementKind, LayoutDocument, LayoutTree, PageLines, TextLine

from .markup import UnsupportedLayoutFormat
from .ordering import order_lines

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

DROP_NO_TEXT = "no_text"
DROP_NO_GEOMETRY = "no_geometry"


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _word_indices(tree: LayoutTree, line_index: int) -> list[int]:
    return [i for i in tree.descendants(line_index) if tree[i].kind == ElementKind.WORD]


def _text_from_words(tree: LayoutTree, words: list[int]) -> str:
    return " ".join(tree.text_content(i).strip() for i in words).strip()


def _box_from_words(tree: LayoutTree, words: list[int]) -> GeometryBox | None:
    # Smallest box enclosing every word that has its own valid geometry.
    return GeometryBox.union_many(tree[i].box for i in words if tree[i].box is not None)


def reconstruct_line(tree: LayoutTree, line_index: int) -> tuple[TextLine | None, str | None]:
    """
    Build one TextLine from a line element, falling back to its word descendants.

    Text and geometry fall back independently: a line with a valid box but no direct
    text only has its text rebuilt from words. Returns (line, None) or (None, drop_reason).
    """

    el = tree[line_index]
    box = el.box
    text = collapse_whitespace(tree.text_content(line_index))

    if text == "" or box is None:
        words = _word_indices(tree, line_index)
        text = collapse_whitespace(_text_from_words(tree, words))
        if text == "":
            return None, DROP_NO_TEXT
        if box is None:
            box = _box_from_words(tree, words)
            if box is None:
                return None, DROP_NO_GEOMETRY

    return TextLine(box=box, text=text), None


def reconstruct_page(tree: LayoutTree, root: int) -> tuple[list[TextLine], list[dict[str, Any]]]:
    """
    Flatten every line element under `root` into TextLines (document order, unsorted).

    Per-line anomalies are absorbed: the line is dropped and recorded, the page continues.
    """

    lines: list[TextLine] = []
    dropped: list[dict[str, Any]] = []

    candidates = [root] if tree[root].kind == ElementKind.LINE else []
    candidates.extend(i for i in tree.descendants(root) if tree[i].kind == ElementKind.LINE)

    for idx in candidates:
        line, reason = reconstruct_line(tree, idx)
        if line is None:
            logger.debug("dropping line element %d: %s", idx, reason)
            dropped.append({"element_index": idx, "reason": reason})
            continue
        lines.append(line)

    return lines, dropped


def reconstruct_document(document: LayoutDocument, *, strict_format: bool = True) -> list[PageLines]:
    """
    Reconstruct ordered lines for every page root of a parsed markup document.

    With `strict_format`, a document that carries text but no recognizable line/word
    markers raises UnsupportedLayoutFormat instead of yielding empty pages.
    """

    if document.convention is None and document.has_body_text and strict_format:
        raise UnsupportedLayoutFormat(
            "markup contains text but no line/word markers (expected <line>/<word> elements, "
            'class="line"/"word", or <span class="l">)'
        )

    pages: list[PageLines] = []
    for page_num, root in enumerate(document.page_roots, start=1):
        lines, dropped = reconstruct_page(document.tree, root)
        pages.append(
            PageLines(
                page_num=page_num,
                lines=order_lines(lines),
                dropped=dropped,
                page_size=document.page_sizes.get(root),
            )
        )
    return pages
