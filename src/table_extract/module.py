from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from contracts.data_access import DataAccessError, require_readable_file, sha256_file

from .contracts import (
    CropArea,
    EngineOutputFormat,
    ExtractedTable,
    ExtractionError,
    ExtractionErrorKind,
    ExtractionMode,
    ExtractionRequest,
    ExtractionResult,
    OutputKind,
    TabulaConfig,
)
from .engines import TableEngine, TabulaCliEngine
from .normalize import OutputParseError, parse_csv_matrix, parse_tabula_json

logger = logging.getLogger(__name__)


def _get_engine() -> TableEngine:
    return TabulaCliEngine()


def _failed(request: ExtractionRequest, error: ExtractionError, meta: dict[str, Any]) -> ExtractionResult:
    return ExtractionResult(
        ok=False,
        output_kind=request.output_kind,
        csv_path=None,
        tables=[],
        error=error,
        meta=meta,
    )


class TabulaOrchestrator:
    """
    Runs tabula-java for one request at a time and normalizes its output.

    Holds only immutable configuration, so one instance may serve concurrent calls for
    different documents. Callers serialize calls that share a csv destination.
    """

    def __init__(self, config: TabulaConfig, engine: TableEngine | None = None) -> None:
        self.config = config
        self.engine = engine if engine is not None else _get_engine()

    def extract(self, request: ExtractionRequest) -> ExtractionResult:
        meta: dict[str, Any] = {
            "mode": request.mode.value,
            "pages": request.pages,
            "area": None if request.area is None else request.area.to_token(),
        }

        try:
            document = require_readable_file(request.document)
        except DataAccessError as e:
            return _failed(
                request,
                ExtractionError(
                    kind=ExtractionErrorKind.DOCUMENT_UNREADABLE,
                    message=str(e),
                    detail={"document": str(request.document)},
                ),
                meta,
            )

        if not self.config.jar_path.is_file():
            return _failed(
                request,
                ExtractionError(
                    kind=ExtractionErrorKind.ENGINE_UNAVAILABLE,
                    message="tabula jar not found",
                    detail={"jar_path": str(self.config.jar_path)},
                ),
                meta,
            )

        output_format = (
            EngineOutputFormat.CSV if request.output_kind == OutputKind.CSV_FILE else request.matrix_format
        )
        meta["engine_output_format"] = output_format.value

        # Engine artifact lives only inside this scope; the directory is removed on every exit path.
        with tempfile.TemporaryDirectory(prefix="tabula_") as tmp_dir:
            artifact = Path(tmp_dir) / f"tables.{output_format.value.lower()}"
            error = self.engine.run(
                config=self.config,
                request=request,
                document=document,
                output_format=output_format,
                output_file=artifact,
            )
            if error is not None:
                return _failed(request, error, meta)

            if not artifact.is_file():
                return _failed(
                    request,
                    ExtractionError(
                        kind=ExtractionErrorKind.OUTPUT_PARSE_FAILED,
                        message="Engine exited 0 but wrote no output artifact",
                    ),
                    meta,
                )

            if request.output_kind == OutputKind.CSV_FILE:
                result = self._deliver_csv(request, artifact, meta)
            else:
                result = self._load_matrix(request, artifact, output_format, meta)

        if result.ok and self.config.compute_source_sha256:
            try:
                result.meta["source_sha256"] = sha256_file(document)
            except OSError as e:
                result.meta.setdefault("audit_warnings", []).append(
                    {"code": "TABLES_SOURCE_HASH_FAILED", "error": repr(e)}
                )
        if result.ok:
            logger.info(
                "extracted tables from %s (%s, pages=%s)", document, request.mode.value, request.pages
            )
        return result

    def _deliver_csv(
        self, request: ExtractionRequest, artifact: Path, meta: dict[str, Any]
    ) -> ExtractionResult:
        destination = request.destination
        if destination is None:
            raise ValueError("csv-file output requires a destination")
        if destination.is_dir():
            return _failed(
                request,
                ExtractionError(
                    kind=ExtractionErrorKind.OUTPUT_WRITE_FAILED,
                    message="CSV destination is a directory",
                    detail={"destination": str(destination)},
                ),
                meta,
            )
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(artifact), str(destination))
        except OSError as e:
            return _failed(
                request,
                ExtractionError(
                    kind=ExtractionErrorKind.OUTPUT_WRITE_FAILED,
                    message="Could not move engine output to destination",
                    detail={"destination": str(destination), "error": repr(e)},
                ),
                meta,
            )
        return ExtractionResult(
            ok=True,
            output_kind=request.output_kind,
            csv_path=str(destination),
            tables=[],
            error=None,
            meta=meta,
        )

    def _load_matrix(
        self,
        request: ExtractionRequest,
        artifact: Path,
        output_format: EngineOutputFormat,
        meta: dict[str, Any],
    ) -> ExtractionResult:
        try:
            text = artifact.read_text(encoding="utf-8")
            if output_format == EngineOutputFormat.JSON:
                tables = parse_tabula_json(text)
            else:
                tables = [ExtractedTable(rows=parse_csv_matrix(text))]
        except (OutputParseError, UnicodeDecodeError) as e:
            return _failed(
                request,
                ExtractionError(
                    kind=ExtractionErrorKind.OUTPUT_PARSE_FAILED,
                    message=str(e),
                    detail={"format": output_format.value},
                ),
                meta,
            )

        meta["table_count"] = len(tables)
        return ExtractionResult(
            ok=True,
            output_kind=request.output_kind,
            csv_path=None,
            tables=tables,
            error=None,
            meta=meta,
        )

    def to_csv(
        self,
        document: Path,
        destination: Path,
        *,
        pages: str = "all",
        mode: ExtractionMode = ExtractionMode.LATTICE,
        area: CropArea | None = None,
    ) -> ExtractionResult:
        return self.extract(
            ExtractionRequest(
                document=document,
                pages=pages,
                mode=mode,
                area=area,
                output_kind=OutputKind.CSV_FILE,
                destination=destination,
            )
        )

    def to_matrix(
        self,
        document: Path,
        *,
        pages: str = "all",
        mode: ExtractionMode = ExtractionMode.LATTICE,
        area: CropArea | None = None,
        matrix_format: EngineOutputFormat = EngineOutputFormat.JSON,
    ) -> ExtractionResult:
        return self.extract(
            ExtractionRequest(
                document=document,
                pages=pages,
                mode=mode,
                area=area,
                output_kind=OutputKind.IN_MEMORY_MATRIX,
                matrix_format=matrix_format,
            )
        )


def run_table_extraction(*, config: TabulaConfig, request: ExtractionRequest) -> ExtractionResult:
    """
    Single-call entrypoint: build an orchestrator for `config` and run `request`.
    """

    return TabulaOrchestrator(config).extract(request)
