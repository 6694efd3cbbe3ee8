from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from contracts.data_access import DataAccessError, require_readable_file, sha256_file
from contracts.layout import MarkupConvention, PageLines
from contracts.pages import resolve_page_selector

from .contracts import LayoutEngineName, LayoutError, TextLayoutConfig, TextLayoutResult
from .engines import PdftotextCliEngine, Pypdfium2PageCounter
from .markup import UnsupportedLayoutFormat, parse_positioned_markup
from .ordering import order_lines
from .reconstruct import reconstruct_document

logger = logging.getLogger(__name__)


def _get_engine(engine: LayoutEngineName):
    if engine == LayoutEngineName.PDFTOTEXT_CLI:
        return PdftotextCliEngine()
    raise ValueError(f"Unsupported layout engine: {engine}")


def _get_page_counter():
    return Pypdfium2PageCounter()


def _failed(
    *,
    config: TextLayoutConfig | None,
    source_path: str | None,
    errors: list[LayoutError],
    meta: dict[str, Any] | None = None,
) -> TextLayoutResult:
    return TextLayoutResult(
        ok=False,
        engine=None if config is None else config.engine,
        source_path=source_path,
        convention=None,
        pages=[],
        errors=errors,
        meta=meta or {},
    )


def _merge_pages(page_num: int, pages: list[PageLines]) -> PageLines:
    """
    Fold the page roots of one engine call into a single page.

    Engines are invoked one page at a time, so this is normally a single entry.
    """

    if len(pages) == 1:
        p = pages[0]
        return PageLines(page_num=page_num, lines=p.lines, dropped=p.dropped, page_size=p.page_size)
    lines = order_lines(ln for p in pages for ln in p.lines)
    dropped = [d for p in pages for d in p.dropped]
    size = next((p.page_size for p in pages if p.page_size is not None), None)
    return PageLines(page_num=page_num, lines=lines, dropped=dropped, page_size=size)


def lines_from_markup(
    markup: bytes | str, *, strict_format: bool = True
) -> tuple[list[PageLines], MarkupConvention | None]:
    """
    Parse + reconstruct + order one positioned-markup document.

    Raises UnsupportedLayoutFormat (strict mode only).
    """

    document = parse_positioned_markup(markup)
    return reconstruct_document(document, strict_format=strict_format), document.convention


def run_text_layout_on_markup(
    *, config: TextLayoutConfig, markup: bytes | str, source_path: str | None = None
) -> TextLayoutResult:
    """
    Reconstruct lines from markup already on hand (no external process).
    """

    try:
        pages, convention = lines_from_markup(markup, strict_format=config.strict_format)
    except UnsupportedLayoutFormat as e:
        return _failed(
            config=config,
            source_path=source_path,
            errors=[LayoutError(code="LAYOUT_UNSUPPORTED_FORMAT", message=str(e))],
        )

    return TextLayoutResult(
        ok=True,
        engine=None,
        source_path=source_path,
        convention=convention,
        pages=pages,
        errors=[],
        meta={"strict_format": config.strict_format},
    )


def run_text_layout_on_markup_file(*, config: TextLayoutConfig, markup_file: Path) -> TextLayoutResult:
    source_path = str(markup_file)
    try:
        markup = require_readable_file(markup_file).read_bytes()
    except (DataAccessError, OSError) as e:
        return _failed(
            config=config,
            source_path=source_path,
            errors=[LayoutError(code="LAYOUT_DOCUMENT_UNREADABLE", message=str(e), detail={"path": source_path})],
        )
    return run_text_layout_on_markup(config=config, markup=markup, source_path=source_path)


def _page_job(
    *, config: TextLayoutConfig, pdf_file: Path, page_num: int
) -> tuple[PageLines | None, MarkupConvention | None, LayoutError | None]:
    engine = _get_engine(config.engine)
    rendered = engine.render_page_markup(config=config, pdf_file=pdf_file, page_num=page_num)
    if rendered.error is not None or rendered.markup is None:
        return None, None, rendered.error or LayoutError(
            code="LAYOUT_BACKEND_ERROR", message="engine returned no markup", detail={"page_num": page_num}
        )

    try:
        pages, convention = lines_from_markup(rendered.markup, strict_format=config.strict_format)
    except UnsupportedLayoutFormat as e:
        return None, None, LayoutError(
            code="LAYOUT_UNSUPPORTED_FORMAT", message=str(e), detail={"page_num": page_num}
        )
    return _merge_pages(page_num, pages), convention, None


def run_text_layout_on_pdf(*, config: TextLayoutConfig, pdf_file: Path, pages: str = "all") -> TextLayoutResult:
    """
    Run the positioned-text backend page by page and reconstruct ordered lines.

    Pages are independent; with `config.max_workers > 1` they are processed in parallel
    and results are still returned in page order. Any page failure fails the document.
    """

    source_path = str(pdf_file)
    try:
        pdf_file = require_readable_file(pdf_file)
    except DataAccessError as e:
        return _failed(
            config=config,
            source_path=source_path,
            errors=[LayoutError(code="LAYOUT_DOCUMENT_UNREADABLE", message=str(e), detail={"path": source_path})],
        )

    counter = _get_page_counter()
    meta: dict[str, Any] = {
        "page_selector": pages,
        "page_count_backend": counter.backend_id(),
        "page_count_backend_version": counter.backend_version(),
        "strict_format": config.strict_format,
    }

    try:
        page_count = counter.get_page_count(pdf_file=pdf_file)
    except Exception as e:
        return _failed(
            config=config,
            source_path=source_path,
            errors=[
                LayoutError(
                    code="LAYOUT_PAGECOUNT_FAILED",
                    message="Failed to read PDF page count",
                    detail={"error": repr(e)},
                )
            ],
            meta=meta,
        )

    try:
        page_nums = resolve_page_selector(pages, page_count=page_count)
    except ValueError as e:
        return _failed(
            config=config,
            source_path=source_path,
            errors=[
                LayoutError(
                    code="LAYOUT_BAD_PAGE_SELECTION",
                    message="Invalid page selection",
                    detail={"page_selector": pages, "page_count": page_count, "error": str(e)},
                )
            ],
            meta=meta,
        )
    meta["page_count"] = page_count

    def job(page_num: int):
        return _page_job(config=config, pdf_file=pdf_file, page_num=page_num)

    if config.max_workers > 1 and len(page_nums) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
            outcomes = list(pool.map(job, page_nums))
    else:
        outcomes = [job(p) for p in page_nums]

    errors = [err for _, _, err in outcomes if err is not None]
    if errors:
        return _failed(config=config, source_path=source_path, errors=errors, meta=meta)

    page_results = [p for p, _, _ in outcomes if p is not None]
    conventions = {c for _, c, _ in outcomes if c is not None}
    if len(conventions) > 1:
        meta["conventions"] = sorted(c.value for c in conventions)

    if config.compute_source_sha256:
        try:
            meta["source_sha256"] = sha256_file(pdf_file)
        except OSError as e:
            meta.setdefault("audit_warnings", []).append(
                {"code": "LAYOUT_SOURCE_HASH_FAILED", "error": repr(e)}
            )

    logger.info(
        "reconstructed %d lines over %d page(s) from %s",
        sum(len(p.lines) for p in page_results),
        len(page_results),
        source_path,
    )

    return TextLayoutResult(
        ok=True,
        engine=config.engine,
        source_path=source_path,
        convention=next(iter(conventions)) if len(conventions) == 1 else None,
        pages=page_results,
        errors=[],
        meta=meta,
    )
