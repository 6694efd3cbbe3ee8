from __future__ import annotations

import json
from typing import Any

from .contracts import ExtractionResult


def serialize_extraction_result(result: ExtractionResult) -> str:
    """
    Stable JSON serialization of an extraction result (tables, flattened rows, error).
    """

    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"
