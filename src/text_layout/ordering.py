from __future__ import annotations

from typing import Iterable

from contracts.layout import TextLine


def line_sort_key(line: TextLine) -> tuple[float, float]:
    # Reading order: top asc, then left asc. Plain numeric comparison, no row bucketing.
    return (line.box.top, line.box.left)


def order_lines(lines: Iterable[TextLine]) -> list[TextLine]:
    """
    Deterministic reading order for reconstructed lines.

    Python's sort is stable, so lines with equal (top, left) keep their input order and
    `order_lines(order_lines(x)) == order_lines(x)`.
    """

    return sorted(lines, key=line_sort_key)
