from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..command import build_tabula_command
from ..contracts import (
    EngineOutputFormat,
    ExtractionError,
    ExtractionErrorKind,
    ExtractionRequest,
    TabulaConfig,
)
from .base import TableEngine

logger = logging.getLogger(__name__)

_STDERR_TAIL = 4000


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class TabulaCliEngine(TableEngine):
    """
    tabula-java via `java -jar tabula.jar`.

    subprocess.run kills the child on timeout and on any exception raised while waiting
    (including KeyboardInterrupt), so no engine process outlives the call.
    """

    def run(
        self,
        *,
        config: TabulaConfig,
        request: ExtractionRequest,
        document: Path,
        output_format: EngineOutputFormat,
        output_file: Path,
    ) -> ExtractionError | None:
        cmd = build_tabula_command(
            config=config,
            request=request,
            output_format=output_format,
            output_file=output_file,
            document=document,
        )
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
            return ExtractionError(
                kind=ExtractionErrorKind.ENGINE_UNAVAILABLE,
                message="java binary not found",
                detail={"expected_command": config.java_path},
            )
        except PermissionError as e:
            return ExtractionError(
                kind=ExtractionErrorKind.ENGINE_UNAVAILABLE,
                message="java binary is not executable",
                detail={"expected_command": config.java_path, "error": repr(e)},
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("tabula timed out after %ss on %s", config.timeout_s, document)
            return ExtractionError(
                kind=ExtractionErrorKind.ENGINE_TIMEOUT,
                message="Table extraction engine timed out",
                detail={"timeout_s": config.timeout_s, "stderr": _decode(e.stderr)[-_STDERR_TAIL:]},
            )

        if proc.returncode != 0:
            logger.warning("tabula exited %d on %s", proc.returncode, document)
            return ExtractionError(
                kind=ExtractionErrorKind.ENGINE_INVOCATION_FAILED,
                message="Table extraction engine returned a non-zero exit code",
                detail={
                    "returncode": proc.returncode,
                    "stderr": proc.stderr[-_STDERR_TAIL:],
                },
            )

        return None
