"""Font size search policies.

Two policies exist because the two destinations budget space differently:

- ``GrowThenBackOff`` only looks at width. The raster destination grows its
  canvas downward to make room for the text, so height is never a constraint.
- ``ShrinkThenGrowBounded`` only looks at height. A region on a page is fixed,
  so the text must fit its height; every entry is counted as exactly one line.

Both return a :class:`SizeSolution`; a size that still overflows at the lower
bound is returned together with a :class:`LayoutOverflow` instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from infostamp.constants import (
    PAGE_FILL_RATIO,
    PAGE_MAX_SIZE,
    PAGE_MIN_SIZE,
    PAGE_SIZE_STEP,
    PAGE_START_SIZE,
    RASTER_MAX_SIZE,
    RASTER_MIN_SIZE,
    RASTER_SIZE_STEP,
    RASTER_START_SIZE,
)
from infostamp.errors import LayoutOverflow
from infostamp.models import FontSpec
from infostamp.render.typography import MetricsProvider

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SizeSolution:
    size: float
    overflow: LayoutOverflow | None = None


class FontSizingStrategy(Protocol):
    name: str

    def solve(
        self,
        entries: Sequence[str],
        font: FontSpec,
        metrics: MetricsProvider,
        width_budget: float,
        height_budget: float | None = None,
    ) -> SizeSolution: ...


def _validate_bounds(start: float, step: float, min_size: float, max_size: float) -> None:
    if step <= 0:
        raise ValueError(f"size step must be positive, got {step}")
    if min_size <= 0:
        raise ValueError(f"minimum font size must be positive, got {min_size}")
    if max_size < min_size:
        raise ValueError(f"maximum font size {max_size} is below minimum {min_size}")
    if not min_size <= start <= max_size:
        raise ValueError(f"start size {start} is outside [{min_size}, {max_size}]")


@dataclass(frozen=True)
class GrowThenBackOff:
    """Largest step-quantized size at which every entry fits on one line.

    Each entry is probed on its own, starting at ``start``: the size grows by
    ``step`` while the next size still fits the width budget, or shrinks by
    ``step`` while the current size overflows. The shared size is the smallest
    per-entry result, so no entry is left overflowing because a later, shorter
    entry allowed a larger size.
    """

    start: float = RASTER_START_SIZE
    step: float = RASTER_SIZE_STEP
    min_size: float = RASTER_MIN_SIZE
    max_size: float = RASTER_MAX_SIZE
    name: str = "grow"

    def __post_init__(self) -> None:
        _validate_bounds(self.start, self.step, self.min_size, self.max_size)

    def _fits(self, entry: str, font: FontSpec, size: float, metrics: MetricsProvider, budget: float) -> bool:
        return metrics.measure_width(font.with_size(size), entry) <= budget

    def _entry_size(self, entry: str, font: FontSpec, metrics: MetricsProvider, budget: float) -> float:
        size = self.start
        if self._fits(entry, font, size, metrics, budget):
            while size + self.step <= self.max_size and self._fits(entry, font, size + self.step, metrics, budget):
                size += self.step
            return size
        while size - self.step >= self.min_size and not self._fits(entry, font, size, metrics, budget):
            size -= self.step
        return size

    def solve(
        self,
        entries: Sequence[str],
        font: FontSpec,
        metrics: MetricsProvider,
        width_budget: float,
        height_budget: float | None = None,
    ) -> SizeSolution:
        texts = [entry for entry in entries if entry and entry.strip()]
        if not texts:
            return SizeSolution(size=self.start)

        size = min(self._entry_size(entry, font, metrics, width_budget) for entry in texts)
        widest = max(metrics.measure_width(font.with_size(size), entry) for entry in texts)
        overflow = None
        if widest > width_budget:
            overflow = LayoutOverflow(required=widest, available=width_budget, font_size=size)
            LOGGER.warning("grow-then-back-off: %s", overflow.describe())
        LOGGER.debug("grow-then-back-off solved size=%s for %d entries", size, len(texts))
        return SizeSolution(size=size, overflow=overflow)


@dataclass(frozen=True)
class ShrinkThenGrowBounded:
    """Fit ``len(entries) * size`` into a fixed height, within ``[min_size, max_size]``.

    Shrinks by ``step`` while the estimate exceeds the budget. Otherwise grows by
    ``step`` while the estimate is below ``fill_ratio`` of the budget; a growth
    step that would exceed the budget is not taken. The shrink and grow phases
    never alternate, so the search always terminates.
    """

    start: float = PAGE_START_SIZE
    step: float = PAGE_SIZE_STEP
    min_size: float = PAGE_MIN_SIZE
    max_size: float = PAGE_MAX_SIZE
    fill_ratio: float = PAGE_FILL_RATIO
    name: str = "shrink"

    def __post_init__(self) -> None:
        _validate_bounds(self.start, self.step, self.min_size, self.max_size)
        if not 0 < self.fill_ratio <= 1:
            raise ValueError(f"fill ratio must be in (0, 1], got {self.fill_ratio}")

    def solve(
        self,
        entries: Sequence[str],
        font: FontSpec,
        metrics: MetricsProvider,
        width_budget: float,
        height_budget: float | None = None,
    ) -> SizeSolution:
        if height_budget is None:
            raise ValueError("shrink-then-grow needs a height budget")
        count = len(entries)
        if count == 0:
            return SizeSolution(size=self.start)

        size = self.start
        if count * size > height_budget:
            while count * size > height_budget and size - self.step >= self.min_size:
                size -= self.step
        else:
            while count * size < self.fill_ratio * height_budget and size + self.step <= self.max_size:
                if count * (size + self.step) > height_budget:
                    break
                size += self.step

        overflow = None
        if count * size > height_budget:
            overflow = LayoutOverflow(required=count * size, available=height_budget, font_size=size)
            LOGGER.warning("shrink-then-grow: %s", overflow.describe())
        LOGGER.debug("shrink-then-grow solved size=%s for %d lines in %.1f", size, count, height_budget)
        return SizeSolution(size=size, overflow=overflow)


def build_strategy(name: str, **params: Any) -> FontSizingStrategy:
    """Build a sizing strategy by name: ``"grow"`` or ``"shrink"``."""
    key = (name or "").strip().lower()
    clean = {k: v for k, v in params.items() if v is not None}
    if key in {"grow", "grow-then-back-off", "grow_then_back_off"}:
        clean.pop("fill_ratio", None)
        return GrowThenBackOff(**clean)
    if key in {"shrink", "shrink-then-grow", "shrink_then_grow"}:
        return ShrinkThenGrowBounded(**clean)
    raise ValueError(f"unknown sizing strategy: {name!r}")
