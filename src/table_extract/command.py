from __future__ import annotations

from pathlib import Path

from .contracts import EngineOutputFormat, ExtractionMode, ExtractionRequest, TabulaConfig

_MODE_FLAGS = {
    ExtractionMode.LATTICE: "-l",
    ExtractionMode.STREAM: "-s",
}


def build_tabula_command(
    *,
    config: TabulaConfig,
    request: ExtractionRequest,
    output_format: EngineOutputFormat,
    output_file: Path,
    document: Path | None = None,
) -> list[str]:
    """
    Argument vector for tabula-java.

    Exactly one mode flag is emitted; the page selector is passed verbatim and the crop
    area, when present, as one "top,left,bottom,right" token.
    """

    cmd = [config.java_path, *config.java_options, "-jar", str(config.jar_path)]
    cmd.append(_MODE_FLAGS[request.mode])
    cmd.extend(["-p", request.pages])
    if request.area is not None:
        cmd.extend(["-a", request.area.to_token()])
    cmd.extend(["-f", output_format.value, "-o", str(output_file)])
    cmd.append(str(document if document is not None else request.document))
    return cmd
