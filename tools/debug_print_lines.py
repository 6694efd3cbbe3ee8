#!/usr/bin/env python3
"""
debug_print_lines.py

Purpose
- Visualize reconstructed text-line artifacts (`tablelines-text-lines --out ...`) in the terminal.

Features
- Prints a per-page summary (line count, dropped elements, page size, errors).
- Renders an ASCII minimap of line boxes, scaled to the page size when known.
- Optionally prints the ordered line text.

Usage examples
  python3 tools/debug_print_lines.py artifacts/lines/votes.json
  python3 tools/debug_print_lines.py artifacts/lines/votes.json --page 2 --show-text

Options
  --page 1              Only render a specific page number
  --width 120           ASCII canvas width
  --height 40           ASCII canvas height
  --show-text           Print line text in reading order
  --max-snippet 120     Max characters per printed line
  --no-ascii            Skip ASCII map output
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

Bounds = Tuple[float, float, float, float]


def _read_json(p: Path) -> Any:
    return json.loads(p.read_text(encoding="utf-8"))


def _truncate(s: str, n: int) -> str:
    if len(s) <= n:
        return s
    return s[: max(0, n - 3)] + "..."


def _box_edges(box: Any) -> Optional[Bounds]:
    if not isinstance(box, dict):
        return None
    try:
        left = float(box["left"])
        top = float(box["top"])
        right = left + float(box["width"])
        bottom = top + float(box["height"])
    except (KeyError, TypeError, ValueError):
        return None
    return (left, top, right, bottom)


def _page_bounds(page: Dict[str, Any]) -> Bounds:
    size = page.get("page_size")
    if isinstance(size, dict) and size.get("width") and size.get("height"):
        return (0.0, 0.0, float(size["width"]), float(size["height"]))

    edges = [e for e in (_box_edges(ln.get("box")) for ln in page.get("lines") or []) if e is not None]
    if not edges:
        return (0.0, 0.0, 1000.0, 1000.0)
    x0 = min(e[0] for e in edges)
    y0 = min(e[1] for e in edges)
    x1 = max(e[2] for e in edges)
    y1 = max(e[3] for e in edges)
    # Degenerate bounds (single zero-size line)
    if x1 <= x0:
        x1 = x0 + 1
    if y1 <= y0:
        y1 = y0 + 1
    return (x0, y0, x1, y1)


def _map_point(x: float, y: float, bounds: Bounds, W: int, H: int) -> Tuple[int, int]:
    x0, y0, x1, y1 = bounds
    fx = (x - x0) / (x1 - x0)
    fy = (y - y0) / (y1 - y0)
    gx = max(0, min(W - 1, int(fx * (W - 1))))
    gy = max(0, min(H - 1, int(fy * (H - 1))))
    return gx, gy


def render_ascii_map(page: Dict[str, Any], *, width: int, height: int) -> str:
    """
    Line boxes drawn as '-' outlines; the first character of each line's text marks its origin.
    """

    canvas = [[" " for _ in range(width)] for __ in range(height)]
    bounds = _page_bounds(page)

    for ln in page.get("lines") or []:
        edges = _box_edges(ln.get("box"))
        if edges is None:
            continue
        xa, ya = _map_point(edges[0], edges[1], bounds, width, height)
        xb, yb = _map_point(edges[2], edges[3], bounds, width, height)
        for x in range(xa, xb + 1):
            canvas[ya][x] = "-"
            canvas[yb][x] = "-"
        text = str(ln.get("text") or "")
        if text:
            canvas[ya][xa] = text[0]

    frame = "+" + ("-" * width) + "+"
    rows = ["|" + "".join(r) + "|" for r in canvas]
    x0, y0, x1, y1 = bounds
    header = f"Bounds: x[{x0:g},{x1:g}] y[{y0:g},{y1:g}]"
    return "\n".join([header, frame, *rows, frame])


def page_summary(page: Dict[str, Any], *, show_text: bool, max_snippet: int) -> str:
    lines = page.get("lines") or []
    dropped = page.get("dropped") or []
    size = page.get("page_size")

    out: List[str] = [f"=== Page {page.get('page_num')} ===  lines={len(lines)} dropped={len(dropped)}"]
    if isinstance(size, dict):
        out.append(f"Page size: {size.get('width')} x {size.get('height')}")
    for d in dropped[:25]:
        out.append(f"  dropped element {d.get('element_index')}: {d.get('reason')}")
    if len(dropped) > 25:
        out.append(f"  ... ({len(dropped) - 25} more)")

    if show_text:
        for i, ln in enumerate(lines):
            out.append(f"  [{i:03d}] {_truncate(str(ln.get('text') or ''), max_snippet)}")
    return "\n".join(out)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Terminal visualization for reconstructed text-line artifacts.")
    ap.add_argument("input", type=str, help="Path to a text-lines JSON artifact.")
    ap.add_argument("--page", type=int, default=None, help="Only render a specific page number.")
    ap.add_argument("--width", type=int, default=120, help="ASCII map width.")
    ap.add_argument("--height", type=int, default=40, help="ASCII map height.")
    ap.add_argument("--show-text", action="store_true", default=False, help="Print line text in reading order.")
    ap.add_argument("--max-snippet", type=int, default=120, help="Max characters per printed line.")
    ap.add_argument("--no-ascii", action="store_true", default=False, help="Skip printing ASCII minimaps.")
    args = ap.parse_args(argv)

    input_path = Path(args.input)
    payload = _read_json(input_path)

    print(f"Input: {input_path}")
    print(f"ok={payload.get('ok')}  convention={payload.get('convention')}")
    for e in payload.get("errors") or []:
        print(f"  - {e.get('code')}: {e.get('message')}")

    pages = payload.get("pages") or []
    if args.page is not None:
        pages = [p for p in pages if p.get("page_num") == args.page]
        if not pages:
            print(f"No page {args.page} found in artifact.")
            return 2

    for page in pages:
        print()
        print(page_summary(page, show_text=args.show_text, max_snippet=args.max_snippet))
        if not args.no_ascii:
            print(render_ascii_map(page, width=args.width, height=args.height))

    return 0 if payload.get("ok") else 2


if __name__ == "__main__":
    raise SystemExit(main())
