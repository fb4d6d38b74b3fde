from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping

from infostamp.errors import Condition

_PAIR_SEPARATOR = re.compile(r"\s*(?:=|:)\s*")


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Ordered ``(label, value)`` pairs, rendered one ``"label: value"`` per entry."""

    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Any, Any]]) -> TextBlock:
        return cls(tuple((str(label), str(value)) for label, value in pairs))

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> TextBlock:
        return cls.from_pairs(mapping.items())

    @classmethod
    def parse(cls, items: Iterable[str]) -> TextBlock:
        """Build a block from ``"Label=Value"`` or ``"Label: Value"`` strings."""
        pairs: list[tuple[str, str]] = []
        for item in items:
            text = str(item).strip()
            if not text:
                continue
            parts = _PAIR_SEPARATOR.split(text, maxsplit=1)
            if len(parts) != 2 or not parts[0]:
                raise ValueError(f"expected 'label=value' or 'label: value', got: {item!r}")
            pairs.append((parts[0], parts[1]))
        return cls(tuple(pairs))

    def lines(self) -> list[str]:
        return [f"{label}: {value}" for label, value in self.pairs]

    def __len__(self) -> int:
        return len(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)


@dataclass(frozen=True, slots=True)
class FontSpec:
    family: str
    size: float
    style: str = "plain"

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"font size must be positive, got {self.size}")

    def with_size(self, size: float) -> FontSpec:
        return replace(self, size=size)


@dataclass(frozen=True, slots=True)
class LineMetrics:
    ascent: float
    descent: float
    leading: float = 0.0

    @property
    def line_height(self) -> float:
        return self.ascent + self.descent + self.leading


class CoordinateSystem(str, Enum):
    TOP_DOWN = "top_down"  # raster: origin top-left, y grows downward
    BOTTOM_UP = "bottom_up"  # page: origin bottom-left, y grows upward


class LineAdvance(str, Enum):
    LINE_HEIGHT = "line_height"
    FONT_SIZE = "font_size"


@dataclass(frozen=True, slots=True)
class LayoutBox:
    x: float
    y: float
    width: float
    height: float
    coords: CoordinateSystem = CoordinateSystem.TOP_DOWN

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        """Visually upper edge, in this box's own coordinate system."""
        if self.coords is CoordinateSystem.BOTTOM_UP:
            return self.y + self.height
        return self.y

    @property
    def bottom(self) -> float:
        if self.coords is CoordinateSystem.BOTTOM_UP:
            return self.y
        return self.y + self.height

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True, slots=True)
class PlacedLine:
    text: str
    x: float
    baseline: float


@dataclass(frozen=True, slots=True)
class CompositionPlan:
    """Everything a compositor needs to paint; built once, never modified."""

    font: FontSpec
    line_metrics: LineMetrics
    lines: tuple[PlacedLine, ...]
    text_box: LayoutBox
    advance: LineAdvance
    image_box: LayoutBox | None = None
    region: LayoutBox | None = None
    conditions: tuple[Condition, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.image_box is not None and self.image_box.coords is not self.text_box.coords:
            raise ValueError("image box and text box use different coordinate systems")
        if self.region is not None and self.region.coords is not self.text_box.coords:
            raise ValueError("region and text box use different coordinate systems")

    @property
    def coords(self) -> CoordinateSystem:
        return self.text_box.coords

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "font": {"family": self.font.family, "size": self.font.size, "style": self.font.style},
            "line_height": self.line_metrics.line_height,
            "coords": self.coords.value,
            "advance": self.advance.value,
            "text_box": list(self.text_box.as_tuple()),
            "image_box": list(self.image_box.as_tuple()) if self.image_box else None,
            "region": list(self.region.as_tuple()) if self.region else None,
            "lines": [{"text": line.text, "x": line.x, "baseline": line.baseline} for line in self.lines],
            "conditions": [condition.describe() for condition in self.conditions],
        }
