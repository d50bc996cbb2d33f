"""Build system for pretranslated template artifacts."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from yeast.compiler.codegen import TranslationMode, translate
from yeast.compiler.exceptions import TranslationError

logger = logging.getLogger(__name__)

DEFAULT_OUT_DIR = Path(".yeast/build")


@dataclass
class BuildSummary:
    templates: int
    plain_pages: int
    bodies: int
    out_dir: Path
    errors: List[TranslationError] = field(default_factory=list)


class ArtifactBuilder:
    def __init__(self, templates_dir: Path, out_dir: Path, cacheable: bool = False) -> None:
        self.templates_dir = templates_dir.resolve()
        self.out_dir = out_dir.resolve()
        self.cacheable = cacheable
        self.mode = TranslationMode.CACHE_SPLIT if cacheable else TranslationMode.INLINE
        self.entries: Dict[str, dict] = {}
        self.errors: List[TranslationError] = []
        self._template_count = 0
        self._plain_count = 0
        self._body_count = 0

    def build(self) -> BuildSummary:
        if self.out_dir == self.templates_dir or self.out_dir in self.templates_dir.parents:
            raise ValueError(f"Output folder {self.out_dir} would hold the templates")
        if self.out_dir.exists():
            shutil.rmtree(self.out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)

        for source in sorted(self.templates_dir.rglob("*.html")):
            if any(part.startswith(".") for part in source.relative_to(self.templates_dir).parts):
                continue
            if self.out_dir in source.parents:
                continue
            self._translate_file(source)

        manifest = {
            "version": 1,
            "mode": self.mode.value,
            "templates_dir": str(self.templates_dir),
            "entries": self.entries,
        }
        manifest_path = self.out_dir / "manifest.json"
        manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")

        return BuildSummary(
            templates=self._template_count,
            plain_pages=self._plain_count,
            bodies=self._body_count,
            out_dir=self.out_dir,
            errors=self.errors,
        )

    def _translate_file(self, source: Path) -> None:
        relative = source.relative_to(self.templates_dir)
        template_id = "/" + relative.with_suffix("").as_posix()
        data = source.read_bytes()

        body_rel: Optional[Path] = None
        if self.cacheable:
            body_rel = relative.with_name(relative.stem + "_b.js")

        try:
            result = translate(
                data,
                self.mode,
                hide_directive_attributes=True,
                body_url=body_rel.name if body_rel is not None else "",
            )
        except TranslationError as e:
            logger.error("Error translating %s: %s", relative, e.message)
            self.errors.append(e.for_template(template_id))
            return

        artifact_path = self.out_dir / relative
        artifact_path.parent.mkdir(parents=True, exist_ok=True)
        artifact_path.write_bytes(result.artifact.content)

        entry = {
            "artifact": relative.as_posix(),
            "hash": self._hash_bytes(data),
            "encoding": result.encoding,
            "model_init": result.artifact.model_init,
            "model_end": result.artifact.model_end,
        }
        if body_rel is not None:
            (self.out_dir / body_rel).write_bytes(result.cached_body_bytes or b"")
            entry["body"] = body_rel.as_posix()
            self._body_count += 1
        self.entries[template_id] = entry

        if result.artifact.is_template:
            self._template_count += 1
        else:
            self._plain_count += 1

    def _hash_bytes(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()


def build_artifacts(
    templates_dir: Path,
    out_dir: Optional[Path] = None,
    cacheable: bool = False,
) -> BuildSummary:
    if out_dir is None:
        out_dir = DEFAULT_OUT_DIR
    builder = ArtifactBuilder(templates_dir=templates_dir, out_dir=out_dir, cacheable=cacheable)
    return builder.build()
