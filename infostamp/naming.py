from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')
_SPACES = re.compile(r"\s+")


def slug(value: str | None, fallback: str = "NA") -> str:
    text = _UNSAFE_CHARS.sub("_", (value or "").strip())
    text = _SPACES.sub("_", text).strip("._")
    return text or fallback


def field_tokens(fields: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Template tokens for text fields: a ``Company Name`` field becomes ``{company_name}``.

    The first field wins when two labels reduce to the same token.
    """
    tokens: dict[str, str] = {}
    for label, value in fields:
        key = slug(label, fallback="").lower()
        if key:
            tokens.setdefault(key, slug(value))
    return tokens


def build_output_name(
    name_template: str,
    source: Path,
    extension: str,
    fields: Iterable[tuple[str, str]] = (),
    preset: str | None = None,
) -> str:
    """Render an output file name such as ``"{stem}__stamped.{ext}"``.

    Besides ``stem``, ``ext`` and ``preset``, every text field is available as a
    token (see :func:`field_tokens`).
    """
    ext = extension.lower().lstrip(".")
    tokens = field_tokens(fields)
    tokens.update(stem=slug(source.stem, fallback="image"), preset=slug(preset, fallback="default"), ext=ext)
    try:
        rendered = name_template.format_map(tokens)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    name = _UNSAFE_CHARS.sub("_", rendered).strip(" .") or f"{tokens['stem']}__stamped.{ext}"
    return name if Path(name).suffix else f"{name}.{ext}"
