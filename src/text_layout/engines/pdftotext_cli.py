from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path

from ..contracts import LayoutError, PageMarkup, TextLayoutConfig
from .base import TextLayoutEngine

logger = logging.getLogger(__name__)


class PdftotextCliEngine(TextLayoutEngine):
    """
    Poppler `pdftotext -bbox-layout`, one page per invocation.

    Output is written to a file in a private temporary directory (never stdout) and the
    directory is removed on every exit path.
    """

    def build_command(self, *, config: TextLayoutConfig, pdf_file: Path, page_num: int, out_file: Path) -> list[str]:
        return [
            config.pdftotext_path,
            "-bbox-layout",
            "-f",
            str(page_num),
            "-l",
            str(page_num),
            str(pdf_file),
            str(out_file),
        ]

    def render_page_markup(self, *, config: TextLayoutConfig, pdf_file: Path, page_num: int) -> PageMarkup:
        with tempfile.TemporaryDirectory(prefix="bbox_") as tmp_dir:
            out_file = Path(tmp_dir) / f"page_{page_num:03d}.html"
            cmd = self.build_command(config=config, pdf_file=pdf_file, page_num=page_num, out_file=out_file)
            logger.debug("running %s", cmd)

            try:
                proc = subprocess.run(
                    cmd,
                    check=False,
                    capture_output=True,
                    text=True,
                    timeout=config.timeout_s,
                )
            except FileNotFoundError:
                return PageMarkup(
                    page_num=page_num,
                    markup=None,
                    error=LayoutError(
                        code="LAYOUT_BACKEND_NOT_INSTALLED",
                        message="pdftotext binary not found",
                        detail={"expected_command": config.pdftotext_path},
                    ),
                )
            except PermissionError as e:
                return PageMarkup(
                    page_num=page_num,
                    markup=None,
                    error=LayoutError(
                        code="LAYOUT_BACKEND_NOT_INSTALLED",
                        message="pdftotext binary is not executable",
                        detail={"expected_command": config.pdftotext_path, "error": repr(e)},
                    ),
                )
            except subprocess.TimeoutExpired:
                return PageMarkup(
                    page_num=page_num,
                    markup=None,
                    error=LayoutError(
                        code="LAYOUT_TIMEOUT",
                        message="pdftotext timed out",
                        detail={"timeout_s": config.timeout_s, "page_num": page_num},
                    ),
                )

            if proc.returncode != 0:
                logger.warning("pdftotext failed on page %d (exit %d)", page_num, proc.returncode)
                return PageMarkup(
                    page_num=page_num,
                    markup=None,
                    error=LayoutError(
                        code="LAYOUT_BACKEND_ERROR",
                        message="pdftotext returned a non-zero exit code",
                        detail={
                            "returncode": proc.returncode,
                            "page_num": page_num,
                            "stderr": proc.stderr[-4000:],
                        },
                    ),
                )

            if not out_file.exists():
                return PageMarkup(
                    page_num=page_num,
                    markup=None,
                    error=LayoutError(
                        code="LAYOUT_BACKEND_ERROR",
                        message="pdftotext exited 0 but wrote no output file",
                        detail={"page_num": page_num},
                    ),
                )

            return PageMarkup(page_num=page_num, markup=out_file.read_bytes())
