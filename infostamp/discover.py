from __future__ import annotations

from pathlib import Path
from typing import Iterable

from infostamp.constants import SUPPORTED_EXTENSIONS


def _normalize_extensions(extensions: Iterable[str] | None) -> set[str]:
    if not extensions:
        return set(SUPPORTED_EXTENSIONS)
    normalized: set[str] = set()
    for ext in extensions:
        if not ext:
            continue
        ext = ext.lower()
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return normalized


def discover_inputs(
    input_path: Path,
    recursive: bool = False,
    extensions: Iterable[str] | None = None,
    exclude: Path | None = None,
) -> list[Path]:
    """List image files under ``input_path``, skipping anything inside ``exclude``."""
    exts = _normalize_extensions(extensions)
    if input_path.is_file():
        return [input_path] if input_path.suffix.lower() in exts else []
    if not input_path.exists():
        return []
    candidates = input_path.rglob("*") if recursive else input_path.iterdir()
    files = [p for p in candidates if p.is_file() and p.suffix.lower() in exts]
    if exclude is not None:
        excluded = exclude.resolve()
        files = [p for p in files if excluded not in p.resolve().parents]
    return sorted(files)
