from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import TextLayoutResult


def serialize_text_layout_result(result: TextLayoutResult) -> str:
    """
    Stable JSON serialization for line artifacts.
    """

    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_text_layout_json_artifact(*, result: TextLayoutResult, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_text_layout_result(result), encoding="utf-8")
