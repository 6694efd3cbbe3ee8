from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from .artifacts import write_text_layout_json_artifact
from .contracts import TextLayoutConfig
from .module import run_text_layout_on_markup_file, run_text_layout_on_pdf


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tablelines-text-lines",
        description="Reconstruct ordered text lines (box + text) from positioned markup or a PDF.",
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--pdf", type=Path, help="PDF to run through `pdftotext -bbox-layout`.")
    src.add_argument("--markup", type=Path, help="Existing positioned-markup (bbox HTML/XHTML) file.")
    p.add_argument("--out", required=True, type=Path, help="Output JSON artifact file path.")
    p.add_argument("--pages", default="all", help='Page selector for --pdf: "all", "3", "1-3", "1,3,5".')
    p.add_argument(
        "--pdftotext",
        default=os.environ.get("PDFTOTEXT_PATH", "pdftotext"),
        help="pdftotext binary (default: $PDFTOTEXT_PATH or pdftotext).",
    )
    p.add_argument("--timeout-s", type=float, default=120.0, help="Per-page pdftotext timeout in seconds.")
    p.add_argument("--max-workers", type=int, default=1, help="Pages reconstructed in parallel.")
    p.add_argument(
        "--no-strict-format",
        action="store_false",
        dest="strict_format",
        default=True,
        help="Return empty pages instead of failing on markup without line/word markers.",
    )
    p.add_argument(
        "--compute-source-sha256",
        action="store_true",
        help="Include SHA-256 of the source PDF in meta for auditing.",
    )
    p.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING).")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = TextLayoutConfig(
        pdftotext_path=args.pdftotext,
        timeout_s=args.timeout_s,
        strict_format=args.strict_format,
        max_workers=args.max_workers,
        compute_source_sha256=args.compute_source_sha256,
    )

    if args.pdf is not None:
        result = run_text_layout_on_pdf(config=config, pdf_file=args.pdf, pages=args.pages)
    else:
        result = run_text_layout_on_markup_file(config=config, markup_file=args.markup)
    write_text_layout_json_artifact(result=result, out_file=args.out)

    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
