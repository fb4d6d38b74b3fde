from __future__ import annotations

import logging
from typing import Protocol, Sequence

from PIL import Image
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from infostamp.constants import (
    PAGE_FONT_FAMILY,
    PAGE_IMAGE_PADDING,
    PAGE_TEXT_PADDING,
    SIGNATURE_IMAGE_RATIO,
)
from infostamp.decoders.image_decoder import decode_image_bytes
from infostamp.errors import Condition, LayoutOverflow
from infostamp.layout.planner import partition_region, plan_lines
from infostamp.layout.sizing import FontSizingStrategy, ShrinkThenGrowBounded
from infostamp.layout.wrap import wrap_entries
from infostamp.models import CompositionPlan, CoordinateSystem, FontSpec, LayoutBox, LineAdvance, TextBlock
from infostamp.render.diagnostics import DebugBorders
from infostamp.render.typography import ReportLabMetrics

LOGGER = logging.getLogger(__name__)


class PageSurface(Protocol):
    """Drawing operations needed on a page, in bottom-up point coordinates."""

    def set_font(self, family: str, size: float) -> None: ...

    def set_fill_color(self, color: str) -> None: ...

    def set_stroke_color(self, color: str) -> None: ...

    def set_line_width(self, width: float) -> None: ...

    def draw_string(self, x: float, y: float, text: str) -> None: ...

    def draw_image(self, image: Image.Image, box: LayoutBox) -> None: ...

    def stroke_rect(self, box: LayoutBox) -> None: ...


class ReportLabPageSurface:
    """:class:`PageSurface` over a reportlab canvas."""

    def __init__(self, canvas: Canvas, metrics: ReportLabMetrics | None = None) -> None:
        self.canvas = canvas
        self.metrics = metrics or ReportLabMetrics()

    def set_font(self, family: str, size: float) -> None:
        self.canvas.setFont(self.metrics.font_name(FontSpec(family=family, size=size)), size)

    def set_fill_color(self, color: str) -> None:
        self.canvas.setFillColor(HexColor(color))

    def set_stroke_color(self, color: str) -> None:
        self.canvas.setStrokeColor(HexColor(color))

    def set_line_width(self, width: float) -> None:
        self.canvas.setLineWidth(width)

    def draw_string(self, x: float, y: float, text: str) -> None:
        self.canvas.drawString(x, y, text)

    def draw_image(self, image: Image.Image, box: LayoutBox) -> None:
        self.canvas.drawImage(
            ImageReader(image),
            box.x,
            box.y,
            width=box.width,
            height=box.height,
            mask="auto",
            preserveAspectRatio=True,
            anchor="c",
        )

    def stroke_rect(self, box: LayoutBox) -> None:
        self.canvas.rect(box.x, box.y, box.width, box.height, stroke=1, fill=0)


class PageCompositor:
    """Paints a bottom-up plan into an existing region of a page."""

    def __init__(self, text_color: str = "#000000") -> None:
        self.text_color = text_color

    def compose(self, surface: PageSurface, plan: CompositionPlan, image: Image.Image | None = None) -> None:
        if plan.coords is not CoordinateSystem.BOTTOM_UP:
            raise ValueError("page compositing needs a bottom-up plan")
        if image is not None and plan.image_box is not None:
            surface.draw_image(image, plan.image_box)
        surface.set_font(plan.font.family, plan.font.size)
        surface.set_fill_color(self.text_color)
        for line in plan.lines:
            surface.draw_string(line.x, line.baseline, line.text)


def as_text_lines(text: TextBlock | Sequence[str]) -> list[str]:
    if isinstance(text, TextBlock):
        return text.lines()
    return [str(line) for line in text]


def plan_region(
    region: LayoutBox,
    text: TextBlock | Sequence[str],
    *,
    with_image: bool = False,
    font_family: str = PAGE_FONT_FAMILY,
    strategy: FontSizingStrategy | None = None,
    image_ratio: float = SIGNATURE_IMAGE_RATIO,
    image_padding: float = PAGE_IMAGE_PADDING,
    text_padding: float = PAGE_TEXT_PADDING,
    metrics: ReportLabMetrics | None = None,
) -> CompositionPlan:
    if region.coords is not CoordinateSystem.BOTTOM_UP:
        raise ValueError("page regions use bottom-up coordinates")
    strategy = strategy or ShrinkThenGrowBounded()
    metrics = metrics or ReportLabMetrics()
    entries = as_text_lines(text)

    image_box, text_box = partition_region(region, image_ratio, image_padding, with_image=with_image)
    width_budget = text_box.width - 2 * text_padding
    height_budget = text_box.height - 2 * text_padding

    base = FontSpec(family=font_family, size=getattr(strategy, "start", 12.0))
    solution = strategy.solve(entries, base, metrics, width_budget, height_budget)
    font = base.with_size(solution.size)

    conditions: list[Condition] = []
    if solution.overflow is not None:
        conditions.append(solution.overflow)
    lines = wrap_entries(entries, font, width_budget, metrics, overflows=conditions)
    required = len(lines) * font.size
    if solution.overflow is None and required > height_budget:
        conditions.append(LayoutOverflow(required=required, available=height_budget, font_size=font.size))

    return plan_lines(
        lines,
        font,
        metrics.line_metrics(font),
        text_box,
        padding=text_padding,
        advance=LineAdvance.FONT_SIZE,
        image_box=image_box,
        region=region,
        conditions=conditions,
    )


def annotate_region(
    surface: PageSurface,
    region: LayoutBox,
    text: TextBlock | Sequence[str],
    image_bytes: bytes | None = None,
    *,
    compositor: PageCompositor | None = None,
    debug_borders: bool = False,
    **options,
) -> CompositionPlan:
    """Draw ``text`` and an optional image into ``region`` of ``surface``.

    The surface is mutated in place. The returned plan carries any overflow
    conditions; they are logged but never raised.
    """
    image = decode_image_bytes(image_bytes) if image_bytes else None
    plan = plan_region(region, text, with_image=image is not None, **options)
    for condition in plan.conditions:
        LOGGER.warning("region annotation: %s", condition.describe())
    compositor = compositor or PageCompositor()
    if debug_borders:
        compositor = DebugBorders(compositor)
    compositor.compose(surface, plan, image)
    return plan
