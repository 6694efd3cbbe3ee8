from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from contracts.geometry import GeometryBox
from contracts.pages import validate_page_selector


class ExtractionMode(str, Enum):
    """
    Table segmentation strategy of the external engine.
    """

    LATTICE = "lattice"  # ruling lines
    STREAM = "stream"  # whitespace gaps


class OutputKind(str, Enum):
    CSV_FILE = "csv-file"
    IN_MEMORY_MATRIX = "in-memory-matrix"


class EngineOutputFormat(str, Enum):
    CSV = "CSV"
    JSON = "JSON"


class ExtractionErrorKind(str, Enum):
    DOCUMENT_UNREADABLE = "DOCUMENT_UNREADABLE"
    ENGINE_UNAVAILABLE = "ENGINE_UNAVAILABLE"
    ENGINE_INVOCATION_FAILED = "ENGINE_INVOCATION_FAILED"
    ENGINE_TIMEOUT = "ENGINE_TIMEOUT"
    OUTPUT_PARSE_FAILED = "OUTPUT_PARSE_FAILED"
    OUTPUT_WRITE_FAILED = "OUTPUT_WRITE_FAILED"


def _fmt_number(v: float) -> str:
    v = float(v)
    return str(int(v)) if v.is_integer() else repr(v)


@dataclass(frozen=True, slots=True)
class CropArea:
    """
    Page sub-region in points, in the engine's "top,left,bottom,right" order.
    """

    top: float
    left: float
    bottom: float
    right: float

    def __post_init__(self) -> None:
        if not all(math.isfinite(v) for v in (self.top, self.left, self.bottom, self.right)):
            raise ValueError("crop area coordinates must be finite")
        if self.bottom < self.top or self.right < self.left:
            raise ValueError("crop area must satisfy bottom >= top and right >= left")
        if min(self.top, self.left) < 0:
            raise ValueError("crop area coordinates must be >= 0")

    def to_token(self) -> str:
        return ",".join(_fmt_number(v) for v in (self.top, self.left, self.bottom, self.right))

    @staticmethod
    def parse(token: str) -> "CropArea":
        parts = [p.strip() for p in token.split(",")]
        if len(parts) != 4:
            raise ValueError(f'crop area must be "top,left,bottom,right", got {token!r}')
        try:
            top, left, bottom, right = (float(p) for p in parts)
        except ValueError as e:
            raise ValueError(f"crop area values must be numeric, got {token!r}") from e
        return CropArea(top=top, left=left, bottom=bottom, right=right)

    def to_box(self) -> GeometryBox:
        return GeometryBox.from_edges(left=self.left, top=self.top, right=self.right, bottom=self.bottom)

    @staticmethod
    def from_box(box: GeometryBox) -> "CropArea":
        return CropArea(top=box.top, left=box.left, bottom=box.bottom, right=box.right)


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    """
    One extraction invocation. Stateless; build a new one per call.

    `pages` is syntax-checked here and passed to the engine verbatim.
    `matrix_format` selects what the engine is asked to write for in-memory results.
    """

    document: Path
    pages: str = "all"
    mode: ExtractionMode = ExtractionMode.LATTICE
    area: CropArea | None = None
    output_kind: OutputKind = OutputKind.IN_MEMORY_MATRIX
    destination: Path | None = None  # required for csv-file
    matrix_format: EngineOutputFormat = EngineOutputFormat.JSON

    def __post_init__(self) -> None:
        if not isinstance(self.document, Path):
            raise TypeError("document must be a pathlib.Path")
        validate_page_selector(self.pages)
        if self.output_kind == OutputKind.CSV_FILE:
            if not isinstance(self.destination, Path):
                raise ValueError("csv-file output requires a destination pathlib.Path")
        elif self.destination is not None:
            raise ValueError("destination is only used with csv-file output")


@dataclass(frozen=True, slots=True)
class ExtractedTable:
    rows: list[list[str]]
    page_number: int | None = None
    extraction_method: str | None = None
    box: GeometryBox | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_number": self.page_number,
            "extraction_method": self.extraction_method,
            "box": None if self.box is None else self.box.to_dict(),
            "rows": [list(r) for r in self.rows],
        }


@dataclass(frozen=True, slots=True)
class ExtractionError:
    kind: ExtractionErrorKind
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """
    Complete result or failure; never a truncated matrix.

    On failure `ok` is False, `error` is set, `csv_path` is None and `tables` is empty.
    """

    ok: bool
    output_kind: OutputKind
    csv_path: str | None
    tables: list[ExtractedTable]
    error: ExtractionError | None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def rows(self) -> list[list[str]]:
        return [list(r) for t in self.tables for r in t.rows]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "output_kind": self.output_kind.value,
            "csv_path": self.csv_path,
            "tables": [t.to_dict() for t in self.tables],
            "rows": self.rows,
            "error": None if self.error is None else self.error.to_dict(),
            "meta": dict(self.meta),
        }


@dataclass(frozen=True, slots=True)
class TabulaConfig:
    """
    tabula-java invocation settings, passed to the orchestrator at construction.

    This module does not read environment variables; see `table_extract.cli` for that.
    """

    jar_path: Path
    java_path: str = "java"
    timeout_s: float = 300.0
    java_options: tuple[str, ...] = ()  # e.g. ("-Xmx2g", "-Dfile.encoding=UTF-8")
    compute_source_sha256: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.jar_path, Path):
            raise TypeError("jar_path must be a pathlib.Path")
        if not self.java_path:
            raise ValueError("java_path must not be empty")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
