from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from PIL import Image, ImageColor, ImageDraw

from infostamp.constants import RASTER_FONT_FAMILY, RASTER_PADDING
from infostamp.decoders.image_decoder import (
    decode_base64_image,
    decode_image_bytes,
    encode_image,
    image_to_base64,
)
from infostamp.errors import Condition
from infostamp.layout.planner import plan_lines
from infostamp.layout.sizing import FontSizingStrategy, GrowThenBackOff
from infostamp.layout.wrap import wrap_entries
from infostamp.models import (
    CompositionPlan,
    CoordinateSystem,
    FontSpec,
    LayoutBox,
    LineAdvance,
    TextBlock,
)
from infostamp.render.typography import MetricsProvider, PillowMetrics, load_font, pixel_size

LOGGER = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "#00000000"
DEFAULT_TEXT_COLOR = "#000000"


@dataclass(slots=True)
class RasterResult:
    image: Image.Image
    plan: CompositionPlan | None
    conditions: tuple[Condition, ...] = ()


def as_text_block(text: TextBlock | Mapping[str, str] | Sequence[tuple[str, str]]) -> TextBlock:
    if isinstance(text, TextBlock):
        return text
    if isinstance(text, Mapping):
        return TextBlock.from_mapping(text)
    return TextBlock.from_pairs(text)


def plan_image_annotation(
    image_size: tuple[int, int],
    block: TextBlock,
    *,
    font_family: str = RASTER_FONT_FAMILY,
    padding: int = RASTER_PADDING,
    strategy: FontSizingStrategy | None = None,
    metrics: MetricsProvider | None = None,
) -> CompositionPlan | None:
    """Plan the text strip appended below an image of ``image_size``.

    Returns ``None`` for an empty block: nothing is drawn and no padding is
    reserved.
    """
    entries = block.lines()
    if not entries:
        return None
    strategy = strategy or GrowThenBackOff()
    metrics = metrics or PillowMetrics()
    width, height = image_size
    max_text_width = width - 2 * padding

    base = FontSpec(family=font_family, size=getattr(strategy, "start", 12.0))
    solution = strategy.solve(entries, base, metrics, max_text_width)
    # Pillow draws at whole pixel sizes; record the size that is actually drawn.
    font = base.with_size(float(pixel_size(solution.size)))

    conditions: list[Condition] = []
    if solution.overflow is not None:
        conditions.append(solution.overflow)
    lines = wrap_entries(entries, font, max_text_width, metrics, overflows=conditions)

    line_metrics = metrics.line_metrics(font)
    text_height = len(lines) * line_metrics.line_height + 2 * padding
    text_box = LayoutBox(0, height, width, text_height, CoordinateSystem.TOP_DOWN)
    return plan_lines(
        lines,
        font,
        line_metrics,
        text_box,
        padding=padding,
        advance=LineAdvance.LINE_HEIGHT,
        conditions=conditions,
    )


class RasterCompositor:
    """Paints a plan onto a new canvas: the original on top, the text strip below."""

    def __init__(self, background: str = DEFAULT_BACKGROUND, text_color: str = DEFAULT_TEXT_COLOR) -> None:
        self.background = ImageColor.getcolor(background, "RGBA")
        self.text_color = ImageColor.getcolor(text_color, "RGBA")

    def compose(self, original: Image.Image, plan: CompositionPlan) -> Image.Image:
        if plan.coords is not CoordinateSystem.TOP_DOWN:
            raise ValueError("raster compositing needs a top-down plan")
        width, height = original.size
        new_height = height + int(round(plan.text_box.height))
        output = Image.new("RGBA", (width, new_height), color=self.background)
        output.paste(original.convert("RGBA"), (0, 0))

        draw = ImageDraw.Draw(output)
        draw.fontmode = "L"  # antialiased
        font = load_font(plan.font)
        ascent = plan.line_metrics.ascent
        for line in plan.lines:
            # Pillow anchors at the ascender line by default.
            draw.text((line.x, line.baseline - ascent), line.text, font=font, fill=self.text_color)
        return output


def compose_image(
    original: Image.Image | bytes,
    text: TextBlock | Mapping[str, str] | Sequence[tuple[str, str]],
    *,
    font_family: str = RASTER_FONT_FAMILY,
    padding: int = RASTER_PADDING,
    strategy: FontSizingStrategy | None = None,
    background: str = DEFAULT_BACKGROUND,
    text_color: str = DEFAULT_TEXT_COLOR,
) -> RasterResult:
    image = decode_image_bytes(original) if isinstance(original, (bytes, bytearray)) else original
    block = as_text_block(text)
    plan = plan_image_annotation(
        image.size,
        block,
        font_family=font_family,
        padding=padding,
        strategy=strategy,
    )
    if plan is None:
        LOGGER.debug("empty text block, image left unchanged")
        return RasterResult(image=image, plan=None)

    for condition in plan.conditions:
        LOGGER.warning("raster annotation: %s", condition.describe())
    rendered = RasterCompositor(background=background, text_color=text_color).compose(image, plan)
    return RasterResult(image=rendered, plan=plan, conditions=plan.conditions)


def annotate_image(
    original: Image.Image | bytes,
    text: TextBlock | Mapping[str, str] | Sequence[tuple[str, str]],
    *,
    image_format: str = "PNG",
    **options,
) -> bytes:
    """Append ``text`` below ``original`` and return the encoded result."""
    result = compose_image(original, text, **options)
    return encode_image(result.image, image_format)


def annotate_base64_image(
    base64_image: str,
    text: TextBlock | Mapping[str, str] | Sequence[tuple[str, str]],
    **options,
) -> str:
    image = decode_base64_image(base64_image)
    result = compose_image(image, text, **options)
    return image_to_base64(result.image)
