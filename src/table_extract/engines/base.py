from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..contracts import EngineOutputFormat, ExtractionError, ExtractionRequest, TabulaConfig


class TableEngine(ABC):
    """
    Interface for external table-segmentation engines.

    IMPORTANT:
    - Engines write their artifact to `output_file` only (never stdout).
    - Engines return None on success or a single ExtractionError; they never raise for
      process failures.
    """

    @abstractmethod
    def run(
        self,
        *,
        config: TabulaConfig,
        request: ExtractionRequest,
        document: Path,
        output_format: EngineOutputFormat,
        output_file: Path,
    ) -> ExtractionError | None:
        raise NotImplementedError
