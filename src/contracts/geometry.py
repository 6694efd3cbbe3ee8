from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True, slots=True)
class GeometryBox:
    """
    Axis-aligned box in layout units (points or pixels; only internal consistency matters).

    - (left, top) is the top-left corner
    - width/height are non-negative
    """

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("left", "top", "width", "height"):
            v = getattr(self, name)
            if not math.isfinite(v):
                raise ValueError(f"{name} must be finite, got {v!r}")
        if self.width < 0 or self.height < 0:
            raise ValueError("width and height must be >= 0")

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @staticmethod
    def from_edges(*, left: float, top: float, right: float, bottom: float) -> "GeometryBox":
        return GeometryBox(left=left, top=top, width=right - left, height=bottom - top)

    def union(self, other: "GeometryBox") -> "GeometryBox":
        return GeometryBox.from_edges(
            left=min(self.left, other.left),
            top=min(self.top, other.top),
            right=max(self.right, other.right),
            bottom=max(self.bottom, other.bottom),
        )

    def contains(self, other: "GeometryBox") -> bool:
        return (
            self.left <= other.left
            and self.top <= other.top
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    @staticmethod
    def union_many(boxes: Iterable["GeometryBox"]) -> "GeometryBox | None":
        out: GeometryBox | None = None
        for b in boxes:
            out = b if out is None else out.union(b)
        return out

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "GeometryBox":
        return GeometryBox(
            left=float(d["left"]),
            top=float(d["top"]),
            width=float(d["width"]),
            height=float(d["height"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}
