"""Helpers for Yeast filesystem paths."""

from __future__ import annotations

import uuid
from pathlib import Path

README_TEXT = "Compiled template snapshots. Do not remove while Yeast is running.\n"


def ensure_snapshot_folder(path: Path) -> Path:
    """Ensure the snapshot folder exists and has a README."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)

    readme_path = path / "README.txt"
    if not readme_path.exists():
        readme_path.write_text(README_TEXT)

    return path


def snapshot_base_name(template_id: str) -> str:
    """Return a unique file name stem for the snapshots of a template."""
    stem = template_id.lstrip("/").replace("/", "_").replace("\\", "_")
    return f"{stem}{uuid.uuid4().hex}"
