from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Mapping

from .artifacts import serialize_extraction_result
from .contracts import (
    CropArea,
    EngineOutputFormat,
    ExtractionMode,
    ExtractionRequest,
    OutputKind,
    TabulaConfig,
)
from .module import TabulaOrchestrator

DEFAULT_JAR = Path("bin") / "tabula" / "tabula.jar"
DEFAULT_TIMEOUT_S = 300.0


def tabula_defaults_from_environ(environ: Mapping[str, str]) -> dict[str, object]:
    """
    CLI defaults from TABULA_JAVA / TABULA_JAR / TABULA_TIMEOUT.

    Application startup is the only place environment variables are read.
    """

    timeout_raw = environ.get("TABULA_TIMEOUT", "")
    try:
        timeout_s = float(timeout_raw) if timeout_raw.strip() else DEFAULT_TIMEOUT_S
    except ValueError:
        raise SystemExit(f"TABULA_TIMEOUT must be a number, got {timeout_raw!r}") from None
    return {
        "java_path": environ.get("TABULA_JAVA") or "java",
        "jar_path": Path(environ.get("TABULA_JAR") or DEFAULT_JAR),
        "timeout_s": timeout_s,
    }


def _crop_area(token: str) -> CropArea:
    try:
        return CropArea.parse(token)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_arg_parser(environ: Mapping[str, str] | None = None) -> argparse.ArgumentParser:
    defaults = tabula_defaults_from_environ(os.environ if environ is None else environ)

    p = argparse.ArgumentParser(
        prog="tablelines-extract",
        description="Extract tables from a PDF using tabula-java (lattice or stream mode).",
    )
    p.add_argument("pdf", type=Path, help="Path to PDF.")
    p.add_argument("--out", type=Path, default=None, help="Output CSV path (if omitted, JSON is printed).")
    p.add_argument("--pages", default="all", help='Pages to process: "all", "1", "1-3", "1,3,5".')
    p.add_argument(
        "--mode",
        choices=[m.value for m in ExtractionMode],
        default=ExtractionMode.LATTICE.value,
        help="lattice (ruling lines) or stream (whitespace).",
    )
    p.add_argument(
        "--area",
        type=_crop_area,
        default=None,
        help='Optional area "top,left,bottom,right" in points.',
    )
    p.add_argument(
        "--format",
        choices=[f.value for f in EngineOutputFormat],
        default=EngineOutputFormat.JSON.value,
        help="Engine output parsed into the printed matrix (ignored with --out).",
    )
    p.add_argument("--java", default=defaults["java_path"], help="java binary (default: $TABULA_JAVA or java).")
    p.add_argument("--jar", type=Path, default=defaults["jar_path"], help="tabula jar (default: $TABULA_JAR).")
    p.add_argument(
        "--timeout-s",
        type=float,
        default=defaults["timeout_s"],
        help="Engine timeout in seconds (default: $TABULA_TIMEOUT or 300).",
    )
    p.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING).")
    return p


def _build_request(args: argparse.Namespace) -> ExtractionRequest:
    if args.out is not None:
        return ExtractionRequest(
            document=args.pdf,
            pages=args.pages,
            mode=ExtractionMode(args.mode),
            area=args.area,
            output_kind=OutputKind.CSV_FILE,
            destination=args.out,
        )
    return ExtractionRequest(
        document=args.pdf,
        pages=args.pages,
        mode=ExtractionMode(args.mode),
        area=args.area,
        output_kind=OutputKind.IN_MEMORY_MATRIX,
        matrix_format=EngineOutputFormat(args.format),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = TabulaConfig(jar_path=args.jar, java_path=args.java, timeout_s=args.timeout_s)
        request = _build_request(args)
    except ValueError as e:
        parser.error(str(e))

    result = TabulaOrchestrator(config).extract(request)

    if result.error is not None:
        print(json.dumps(result.error.to_dict(), ensure_ascii=False, sort_keys=True, indent=2), file=sys.stderr)
        return 2

    if result.csv_path is not None:
        print(f"CSV written to: {result.csv_path}")
    else:
        sys.stdout.write(serialize_extraction_result(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
