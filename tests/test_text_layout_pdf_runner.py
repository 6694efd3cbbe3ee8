from __future__ import annotations

import subprocess
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from contracts.layout import MarkupConvention
from text_layout.contracts import LayoutError, PageMarkup, TextLayoutConfig
from text_layout.engines import PdftotextCliEngine, Pypdfium2PageCounter
from text_layout.module import run_text_layout_on_markup, run_text_layout_on_pdf


def _page_markup(page_num: int) -> bytes:
    # Two lines given out of reading order.
    return (
        "<doc>"
        '<page width="612" height="792">'
        f'<line xMin="10" yMin="50" xMax="90" yMax="60"><word xMin="10" yMin="50" xMax="90" yMax="60">body{page_num}</word></line>'
        f'<line xMin="10" yMin="10" xMax="90" yMax="20"><word xMin="10" yMin="10" xMax="90" yMax="20">title{page_num}</word></line>'
        "</page>"
        "</doc>"
    ).encode("utf-8")


class FakePageCounter:
    def __init__(self, n: int) -> None:
        self.n = n

    def backend_id(self) -> str:
        return "fake"

    def backend_version(self) -> str | None:
        return "0"

    def get_page_count(self, *, pdf_file: Path) -> int:
        return self.n


class FakeEngine:
    def __init__(self, failing_pages: set[int] | None = None) -> None:
        self.failing_pages = failing_pages or set()
        self.calls: list[int] = []
        self._lock = threading.Lock()

    def render_page_markup(self, *, config: TextLayoutConfig, pdf_file: Path, page_num: int) -> PageMarkup:
        with self._lock:
            self.calls.append(page_num)
        if page_num in self.failing_pages:
            return PageMarkup(
                page_num=page_num,
                markup=None,
                error=LayoutError(code="LAYOUT_BACKEND_ERROR", message="boom", detail={"page_num": page_num}),
            )
        return PageMarkup(page_num=page_num, markup=_page_markup(page_num))


class TestRunTextLayoutOnPdf(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.pdf = Path(self._tmp.name) / "votes.pdf"
        self.pdf.write_bytes(b"%PDF-FAKE%")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, engine: FakeEngine, *, page_count: int = 3, pages: str = "all", **config_kwargs):
        config = TextLayoutConfig(**config_kwargs)
        with (
            patch("text_layout.module._get_engine", return_value=engine),
            patch("text_layout.module._get_page_counter", return_value=FakePageCounter(page_count)),
        ):
            return run_text_layout_on_pdf(config=config, pdf_file=self.pdf, pages=pages)

    def test_selected_pages_in_order_with_parallel_workers(self) -> None:
        engine = FakeEngine()
        result = self._run(engine, pages="3,1-2", max_workers=2, compute_source_sha256=True)

        self.assertTrue(result.ok, result.errors)
        self.assertEqual(result.convention, MarkupConvention.BBOX_LAYOUT)
        self.assertEqual([p.page_num for p in result.pages], [1, 2, 3])
        self.assertEqual(sorted(engine.calls), [1, 2, 3])
        for page in result.pages:
            self.assertEqual(
                [ln.text for ln in page.lines], [f"title{page.page_num}", f"body{page.page_num}"]
            )
            self.assertEqual(page.page_size, (612.0, 792.0))
        self.assertEqual(result.meta["page_count"], 3)
        self.assertEqual(len(result.meta["source_sha256"]), 64)

    def test_any_page_failure_fails_the_document(self) -> None:
        result = self._run(FakeEngine(failing_pages={2}))
        self.assertFalse(result.ok)
        self.assertEqual(result.pages, [])
        self.assertEqual([e.detail["page_num"] for e in result.errors], [2])

    def test_selection_beyond_page_count(self) -> None:
        engine = FakeEngine()
        result = self._run(engine, page_count=3, pages="5")
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, "LAYOUT_BAD_PAGE_SELECTION")
        self.assertEqual(engine.calls, [])

    def test_unreadable_document(self) -> None:
        engine = FakeEngine()
        config = TextLayoutConfig()
        with patch("text_layout.module._get_engine", return_value=engine):
            result = run_text_layout_on_pdf(config=config, pdf_file=self.pdf.with_name("missing.pdf"))
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, "LAYOUT_DOCUMENT_UNREADABLE")
        self.assertEqual(engine.calls, [])


class TestPypdfium2PageCounter(unittest.TestCase):
    def test_counts_pages_of_a_real_pdf(self) -> None:
        import pypdfium2 as pdfium

        with tempfile.TemporaryDirectory() as tmp:
            pdf_path = Path(tmp) / "three_pages.pdf"
            doc = pdfium.PdfDocument.new()
            try:
                for _ in range(3):
                    doc.new_page(612, 792)
                doc.save(str(pdf_path))
            finally:
                doc.close()

            counter = Pypdfium2PageCounter()
            self.assertEqual(counter.backend_id(), "pypdfium2")
            self.assertEqual(counter.get_page_count(pdf_file=pdf_path), 3)


class TestRunTextLayoutOnMarkup(unittest.TestCase):
    def test_unsupported_format_is_reported_not_raised(self) -> None:
        result = run_text_layout_on_markup(config=TextLayoutConfig(), markup=b"<p>plain text</p>")
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, "LAYOUT_UNSUPPORTED_FORMAT")

        lenient = run_text_layout_on_markup(
            config=TextLayoutConfig(strict_format=False), markup=b"<p>plain text</p>"
        )
        self.assertTrue(lenient.ok)
        self.assertEqual(lenient.pages[0].lines, [])


class TestPdftotextCliEngine(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.pdf = Path(self._tmp.name) / "votes.pdf"
        self.pdf.write_bytes(b"%PDF-FAKE%")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_command_and_temp_dir_cleanup(self) -> None:
        seen: list[list[str]] = []

        def fake_run(cmd, **kwargs):
            seen.append(list(cmd))
            Path(cmd[-1]).write_bytes(_page_markup(4))
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        config = TextLayoutConfig(pdftotext_path="/opt/poppler/pdftotext", timeout_s=7)
        with patch("text_layout.engines.pdftotext_cli.subprocess.run", fake_run):
            rendered = PdftotextCliEngine().render_page_markup(config=config, pdf_file=self.pdf, page_num=4)

        self.assertIsNone(rendered.error)
        self.assertEqual(rendered.markup, _page_markup(4))
        cmd = seen[0]
        self.assertEqual(cmd[:6], ["/opt/poppler/pdftotext", "-bbox-layout", "-f", "4", "-l", "4"])
        self.assertEqual(cmd[6], str(self.pdf))
        self.assertFalse(Path(cmd[-1]).parent.exists())

    def test_backend_failures(self) -> None:
        config = TextLayoutConfig()

        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        def not_executable(cmd, **kwargs):
            raise PermissionError(13, "Permission denied", cmd[0])

        def hung(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        def failing(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Syntax Error: broken xref")

        def silent(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        cases = [
            (missing, "LAYOUT_BACKEND_NOT_INSTALLED"),
            (not_executable, "LAYOUT_BACKEND_NOT_INSTALLED"),
            (hung, "LAYOUT_TIMEOUT"),
            (failing, "LAYOUT_BACKEND_ERROR"),
            (silent, "LAYOUT_BACKEND_ERROR"),
        ]
        for fake_run, code in cases:
            with self.subTest(code=code, fake=fake_run.__name__):
                with patch("text_layout.engines.pdftotext_cli.subprocess.run", fake_run):
                    rendered = PdftotextCliEngine().render_page_markup(config=config, pdf_file=self.pdf, page_num=1)
                self.assertIsNone(rendered.markup)
                self.assertEqual(rendered.error.code, code)


if __name__ == "__main__":
    unittest.main()
