from __future__ import annotations

import json
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from infostamp.constants import (
    PAGE_FILL_RATIO,
    PAGE_FONT_FAMILY,
    PAGE_IMAGE_PADDING,
    PAGE_MAX_SIZE,
    PAGE_MIN_SIZE,
    PAGE_SIZE_STEP,
    PAGE_START_SIZE,
    PAGE_TEXT_PADDING,
    SIGNATURE_IMAGE_RATIO,
    VALID_STRATEGIES,
)
from infostamp.layout.sizing import FontSizingStrategy, build_strategy


@dataclass(slots=True)
class LayoutPreset:
    """Named region layout: image/text split, paddings, font and sizing policy."""

    name: str
    image_ratio: float
    image_padding: float
    text_padding: float
    font_family: str
    text_color: str
    sizing: dict[str, Any] = field(default_factory=dict)

    def strategy(self) -> FontSizingStrategy:
        params = dict(self.sizing)
        name = str(params.pop("strategy", "shrink"))
        return build_strategy(name, **params)

    def region_options(self) -> dict[str, Any]:
        return {
            "font_family": self.font_family,
            "strategy": self.strategy(),
            "image_ratio": self.image_ratio,
            "image_padding": self.image_padding,
            "text_padding": self.text_padding,
        }


def list_builtin_presets() -> list[str]:
    files = resources.files("infostamp.presets")
    names = []
    for item in files.iterdir():
        if item.name.endswith((".yaml", ".yml", ".json")):
            names.append(Path(item.name).stem)
    return sorted(set(names))


def _parse(text: str, suffix: str) -> Any:
    if suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def _load_file(path: Path) -> dict[str, Any]:
    data = _parse(path.read_text(encoding="utf-8"), path.suffix.lower())
    if not isinstance(data, dict):
        raise ValueError(f"preset file is not a dict: {path}")
    return data


def _load_builtin(name: str) -> dict[str, Any]:
    pkg = resources.files("infostamp.presets")
    for suffix in (".yaml", ".yml", ".json"):
        candidate = pkg / f"{name}{suffix}"
        if candidate.is_file():
            data = _parse(candidate.read_text(encoding="utf-8"), suffix)
            if isinstance(data, dict):
                return data
    raise FileNotFoundError(f"built-in preset not found: {name}")


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def normalize_preset_dict(data: dict[str, Any]) -> LayoutPreset:
    padding = {"image": PAGE_IMAGE_PADDING, "text": PAGE_TEXT_PADDING}
    padding.update(data.get("padding") or {})

    sizing: dict[str, Any] = {
        "strategy": "shrink",
        "start": PAGE_START_SIZE,
        "step": PAGE_SIZE_STEP,
        "min_size": PAGE_MIN_SIZE,
        "max_size": PAGE_MAX_SIZE,
        "fill_ratio": PAGE_FILL_RATIO,
    }
    sizing.update(data.get("sizing") or {})
    strategy = str(sizing["strategy"]).strip().lower()
    if strategy not in VALID_STRATEGIES:
        raise ValueError(f"unknown sizing strategy in preset: {sizing['strategy']!r}")

    min_size = max(1.0, float(sizing["min_size"]))
    max_size = max(min_size, float(sizing["max_size"]))
    ratio = data.get("image_ratio")

    return LayoutPreset(
        name=str(data.get("name") or "custom"),
        image_ratio=_clamp(float(SIGNATURE_IMAGE_RATIO if ratio is None else ratio), 0.0, 0.9),
        image_padding=max(0.0, float(padding["image"])),
        text_padding=max(0.0, float(padding["text"])),
        font_family=str(data.get("font_family") or PAGE_FONT_FAMILY),
        text_color=str(data.get("text_color") or "#000000"),
        sizing={
            "strategy": strategy,
            "start": _clamp(float(sizing["start"]), min_size, max_size),
            "step": max(0.1, float(sizing["step"])),
            "min_size": min_size,
            "max_size": max_size,
            "fill_ratio": _clamp(float(sizing["fill_ratio"]), 0.1, 1.0),
        },
    )


def load_preset(name_or_path: str) -> LayoutPreset:
    path = Path(name_or_path)
    if path.suffix and path.exists():
        raw = _load_file(path)
    else:
        raw = _load_builtin(name_or_path)
    return normalize_preset_dict(raw)
