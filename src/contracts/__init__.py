"""
Shared value types for the text-layout and table-extraction pipelines.

Stage code should consume/produce these contract objects (not ad-hoc dicts).
"""

from .geometry import GeometryBox
from .layout import (
    ElementKind,
    LayoutDocument,
    LayoutTree,
    MarkupConvention,
    PageLines,
    PositionedElement,
    TextLine,
)
from .pages import resolve_page_selector, validate_page_selector

__all__ = [
    "GeometryBox",
    "ElementKind",
    "MarkupConvention",
    "PositionedElement",
    "LayoutTree",
    "LayoutDocument",
    "TextLine",
    "PageLines",
    "resolve_page_selector",
    "validate_page_selector",
]
