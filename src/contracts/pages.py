from __future__ import annotations

import re

_PART_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$")


def _parse_part(part: str) -> tuple[int, int]:
    m = _PART_RE.match(part)
    if m is None:
        raise ValueError(f"invalid page selector part: {part!r}")
    a = int(m.group(1))
    b = int(m.group(2)) if m.group(2) is not None else a
    if a <= 0 or b <= 0:
        raise ValueError("page numbers must be >= 1")
    if b < a:
        raise ValueError(f"invalid range: {part.strip()!r}")
    return a, b


def is_all_pages(selector: str) -> bool:
    return selector.strip().lower() == "all"


def validate_page_selector(selector: str) -> str:
    """
    Check the syntax of a page selector ("all" | "N" | "N-M" | "1,3-5").

    The selector is returned unchanged so it can be handed to external engines verbatim.
    """

    if not isinstance(selector, str):
        raise TypeError("page selector must be a string")
    if is_all_pages(selector):
        return selector
    if selector.strip() == "":
        raise ValueError("page selector is empty")
    for part in selector.split(","):
        _parse_part(part)
    return selector


def resolve_page_selector(selector: str, *, page_count: int) -> list[int]:
    """
    Parse a page selector into a sorted list of unique 1-indexed page numbers.
    """

    validate_page_selector(selector)
    if is_all_pages(selector):
        return list(range(1, page_count + 1))

    pages: set[int] = set()
    for part in selector.split(","):
        a, b = _parse_part(part)
        pages.update(range(a, b + 1))

    ordered = sorted(pages)
    if ordered and ordered[-1] > page_count:
        raise ValueError(f"page selection out of bounds (1..{page_count})")
    return ordered
