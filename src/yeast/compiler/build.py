"""Offline translation of template files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from yeast.compiler.codegen import TranslationMode, TranslationResult, translate

if TYPE_CHECKING:
    from yeast.compiler.build_artifacts import BuildSummary

logger = logging.getLogger(__name__)


@dataclass
class TranslatedFile:
    source: Path
    output: Path
    body: Optional[Path]
    result: TranslationResult


def default_output_name(name: str) -> str:
    """``page.html`` -> ``page_t.html``."""
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return name + "_t"
    return f"{stem}_t.{ext}"


def body_file_name(output_name: str) -> str:
    """``page_t.html`` -> ``page_t_b.js``."""
    stem, dot, _ = output_name.rpartition(".")
    return (stem if dot else output_name) + "_b.js"


def translate_file(
    file: str,
    path: Path = Path("."),
    dest: Optional[str] = None,
    cacheable: bool = False,
    hide_directive_attributes: bool = False,
) -> TranslatedFile:
    """Translate ``path/file`` into ``path/dest``.

    With ``cacheable`` the page body goes to ``<dest stem>_b.js`` next to it,
    and the page loads it by that relative name.
    """
    path = Path(path)
    source = path / file
    logger.info("Reading input file %s", source)
    data = source.read_bytes()

    dest = dest or default_output_name(file)
    output = path / dest
    body: Optional[Path] = None

    if cacheable:
        body_name = body_file_name(dest)
        body = path / body_name
        result = translate(
            data,
            TranslationMode.CACHE_SPLIT,
            hide_directive_attributes=hide_directive_attributes,
            body_url=body_name,
        )
    else:
        result = translate(data, hide_directive_attributes=hide_directive_attributes)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.artifact.content)
    logger.info("Generated output %s", output)
    if body is not None:
        body.write_bytes(result.cached_body_bytes or b"")
        logger.info("Generated output %s", body)

    return TranslatedFile(source=source, output=output, body=body, result=result)


def build_project(
    templates_dir: Path,
    out_dir: Optional[Path] = None,
    cacheable: bool = False,
) -> BuildSummary:
    """Translate every template of a folder."""
    from yeast.compiler.build_artifacts import build_artifacts

    if not Path(templates_dir).is_dir():
        raise ValueError(f"Templates folder not found: {templates_dir}")

    return build_artifacts(templates_dir=templates_dir, out_dir=out_dir, cacheable=cacheable)
