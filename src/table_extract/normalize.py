from __future__ import annotations

import csv
import io
import json
import re
from typing import Any

from contracts.geometry import GeometryBox

from .contracts import ExtractedTable

_WS_RE = re.compile(r"\s+")


class OutputParseError(ValueError):
    pass


def simplify_cell(cell: Any) -> str:
    """
    Tabula JSON cells are objects ({"text": ..., "top": ...}); keep the text only,
    whitespace-collapsed and trimmed.
    """

    if isinstance(cell, dict):
        raw = cell.get("text")
        text = "" if raw is None else str(raw)
    elif cell is None:
        text = ""
    else:
        text = str(cell)
    return _WS_RE.sub(" ", text).strip()


def parse_csv_matrix(text: str) -> list[list[str]]:
    """
    Rows of string cells from engine CSV output, cells kept as written.
    """

    try:
        return [row for row in csv.reader(io.StringIO(text, newline=""))]
    except csv.Error as e:
        raise OutputParseError(f"invalid CSV output: {e}") from e


def _table_box(raw: dict[str, Any]) -> GeometryBox | None:
    try:
        return GeometryBox(
            left=float(raw["left"]),
            top=float(raw["top"]),
            width=float(raw["width"]),
            height=float(raw["height"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _optional_int(v: Any) -> int | None:
    try:
        return None if v is None else int(v)
    except (TypeError, ValueError):
        return None


def parse_tabula_json(text: str) -> list[ExtractedTable]:
    """
    Tables from tabula-java JSON output: a list of {"extraction_method", "page_number",
    "top", "left", "width", "height", "data": [[cell, ...], ...]}.
    """

    if text.strip() == "":
        return []
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise OutputParseError(f"invalid JSON output: {e.msg} (line {e.lineno})") from e

    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise OutputParseError("JSON output must be a list of tables")

    tables: list[ExtractedTable] = []
    for t_idx, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise OutputParseError(f"table {t_idx} is not an object")
        data = raw.get("data") or []
        if not isinstance(data, list):
            raise OutputParseError(f"table {t_idx}: data must be a list of rows")

        rows: list[list[str]] = []
        for r_idx, row in enumerate(data):
            if not isinstance(row, list):
                raise OutputParseError(f"table {t_idx} row {r_idx} is not a list")
            rows.append([simplify_cell(c) for c in row])

        method = raw.get("extraction_method")
        tables.append(
            ExtractedTable(
                rows=rows,
                page_number=_optional_int(raw.get("page_number")),
                extraction_method=None if method is None else str(method),
                box=_table_box(raw),
            )
        )
    return tables
