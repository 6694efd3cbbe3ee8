"""
Positional text-layout reconstruction.

Input: positioned markup for a page (line/word elements with bounding boxes), e.g. the
output of `pdftotext -bbox-layout`.
Output: ordered text lines, each with a normalized box and whitespace-collapsed text.

- Per-line anomalies (missing geometry, empty text) drop that line only.
- Line/word marker convention is detected once per document.
- No OCR, no multi-page stitching, no semantic interpretation.
"""

from .contracts import LayoutEngineName, LayoutError, TextLayoutConfig, TextLayoutResult
from .markup import UnsupportedLayoutFormat, parse_positioned_markup
from .module import (
    lines_from_markup,
    run_text_layout_on_markup,
    run_text_layout_on_markup_file,
    run_text_layout_on_pdf,
)
from .ordering import order_lines
from .reconstruct import reconstruct_document, reconstruct_line, reconstruct_page
from .style import parse_style_box

__all__ = [
    "LayoutEngineName",
    "LayoutError",
    "TextLayoutConfig",
    "TextLayoutResult",
    "UnsupportedLayoutFormat",
    "parse_positioned_markup",
    "parse_style_box",
    "reconstruct_line",
    "reconstruct_page",
    "reconstruct_document",
    "order_lines",
    "lines_from_markup",
    "run_text_layout_on_markup",
    "run_text_layout_on_markup_file",
    "run_text_layout_on_pdf",
]
