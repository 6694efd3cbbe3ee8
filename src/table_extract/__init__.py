"""
Table extraction orchestration around tabula-java.

- Input: a document path, page selector, lattice/stream mode, optional crop area
- Output: a CSV file at a caller-chosen destination, or an in-memory row/cell matrix
- The engine always writes to a private temporary file, removed on every exit path
- Failures come back as one ExtractionError with a programmatic `kind`; no partial rows

This package does not read environment variables; configuration is passed explicitly.
"""

from .command import build_tabula_command
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
from .module import TabulaOrchestrator, run_table_extraction

__all__ = [
    "CropArea",
    "EngineOutputFormat",
    "ExtractedTable",
    "ExtractionError",
    "ExtractionErrorKind",
    "ExtractionMode",
    "ExtractionRequest",
    "ExtractionResult",
    "OutputKind",
    "TabulaConfig",
    "TabulaOrchestrator",
    "build_tabula_command",
    "run_table_extraction",
]
