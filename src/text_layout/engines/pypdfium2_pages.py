from __future__ import annotations

from pathlib import Path

import pypdfium2 as pdfium

from .base import PageCounter


class Pypdfium2PageCounter(PageCounter):
    """Page count lookup used to expand "all" and bound-check page ranges."""

    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        return getattr(pdfium, "__version__", None)

    def get_page_count(self, *, pdf_file: Path) -> int:
        doc = pdfium.PdfDocument(str(pdf_file))
        try:
            return len(doc)
        finally:
            doc.close()
