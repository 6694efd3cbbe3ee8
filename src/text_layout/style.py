from __future__ import annotations

import re
from typing import Mapping

from contracts.geometry import GeometryBox

_NUMBER = r"([-+]?(?:\d+(?:\.\d*)?|\.\d+))"

# Whole-property match only: "margin-left" / "border-top-width" must not satisfy "left" / "top".
_STYLE_KEY_RES: dict[str, re.Pattern[str]] = {
    key: re.compile(rf"(?<![\w-]){key}\s*:\s*{_NUMBER}", re.IGNORECASE)
    for key in ("left", "top", "width", "height")
}


def _style_number(style: str, key: str) -> float | None:
    m = _STYLE_KEY_RES[key].search(style)
    if m is None:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def parse_style_box(style: str | None) -> GeometryBox | None:
    """
    Extract left/top/width/height from a loosely formatted style string.

    Examples accepted: "left:10;top:5;width:100;height:12",
    "TOP: 5px  Left:10 ; height:12pt width:100". Missing or non-numeric fields mean
    "no box"; a zero-filled box is never returned in their place.
    """

    if not style:
        return None

    values = {key: _style_number(style, key) for key in _STYLE_KEY_RES}
    if any(v is None for v in values.values()):
        return None

    try:
        return GeometryBox(
            left=values["left"],  # type: ignore[arg-type]
            top=values["top"],  # type: ignore[arg-type]
            width=values["width"],  # type: ignore[arg-type]
            height=values["height"],  # type: ignore[arg-type]
        )
    except ValueError:
        # Negative extents are malformed geometry, same as missing.
        return None


def _attr_float(attrs: Mapping[str, str | None], key: str) -> float | None:
    raw = attrs.get(key)
    if raw is None:
        return None
    try:
        return float(raw.strip())
    except ValueError:
        return None


def box_from_edge_attributes(attrs: Mapping[str, str | None]) -> GeometryBox | None:
    """
    Box from poppler bbox-layout attributes (xMin, yMin, xMax, yMax).

    Attribute names are matched case-insensitively by the markup parser, which lowercases them.
    """

    x0 = _attr_float(attrs, "xmin")
    y0 = _attr_float(attrs, "ymin")
    x1 = _attr_float(attrs, "xmax")
    y1 = _attr_float(attrs, "ymax")
    if x0 is None or y0 is None or x1 is None or y1 is None:
        return None
    try:
        return GeometryBox.from_edges(left=x0, top=y0, right=x1, bottom=y1)
    except ValueError:
        return None
