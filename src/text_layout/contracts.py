from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from contracts.layout import MarkupConvention, PageLines


class LayoutEngineName(str, Enum):
    """
    Positioned-markup backends supported by this module.
    """

    PDFTOTEXT_CLI = "pdftotext_cli"


@dataclass(frozen=True, slots=True)
class LayoutError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class PageMarkup:
    """
    Raw positioned markup produced by an engine for one page.

    Exactly one of `markup` / `error` is set.
    """

    page_num: int
    markup: bytes | None
    error: LayoutError | None = None


@dataclass(frozen=True, slots=True)
class TextLayoutResult:
    """
    Ordered text lines per page.

    On failure, `ok` is False and `pages` is empty. Lines dropped during reconstruction are
    not failures; they are listed per page under `dropped`.
    """

    ok: bool
    engine: LayoutEngineName | None
    source_path: str | None
    convention: MarkupConvention | None
    pages: list[PageLines]
    errors: list[LayoutError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "engine": None if self.engine is None else self.engine.value,
            "source_path": self.source_path,
            "convention": None if self.convention is None else self.convention.value,
            "pages": [p.to_dict() for p in self.pages],
            "errors": [asdict(e) for e in self.errors],
            "meta": dict(self.meta),
        }


@dataclass(frozen=True, slots=True)
class TextLayoutConfig:
    """
    Text-layout stage configuration.

    Passed explicitly by the caller; this module does not read environment variables.
    """

    engine: LayoutEngineName = LayoutEngineName.PDFTOTEXT_CLI
    pdftotext_path: str = "pdftotext"
    timeout_s: float = 120.0
    strict_format: bool = True  # raise on markup with text but no line/word markers
    max_workers: int = 1  # pages reconstructed in parallel
    compute_source_sha256: bool = False

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if not self.pdftotext_path:
            raise ValueError("pdftotext_path must not be empty")
