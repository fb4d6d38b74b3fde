from __future__ import annotations

from typing import Iterable, Sequence

from infostamp.errors import Condition
from infostamp.models import (
    CompositionPlan,
    CoordinateSystem,
    FontSpec,
    LayoutBox,
    LineAdvance,
    LineMetrics,
    PlacedLine,
)


def partition_region(
    region: LayoutBox,
    image_ratio: float,
    image_padding: float,
    with_image: bool = True,
) -> tuple[LayoutBox | None, LayoutBox]:
    """Split ``region`` into an image area and a text area.

    The image takes ``image_ratio`` of the height at the visual top, the text
    the rest below it. The image box is inset by ``image_padding`` on its sides
    and on the edge it shares with the text; the text box is inset horizontally
    and at its top. The split is kept when there is no image, so text lands in
    the same place either way.
    """
    if not 0 <= image_ratio < 1:
        raise ValueError(f"image ratio must be in [0, 1), got {image_ratio}")
    image_height = region.height * image_ratio
    text_height = region.height - image_height
    inner_width = max(0.0, region.width - 2 * image_padding)
    image_box_height = max(0.0, image_height - image_padding)
    text_box_height = max(0.0, text_height - image_padding)

    if region.coords is CoordinateSystem.BOTTOM_UP:
        text_box = LayoutBox(region.x + image_padding, region.y, inner_width, text_box_height, region.coords)
        image_box = LayoutBox(
            region.x + image_padding,
            region.y + text_height,
            inner_width,
            image_box_height,
            region.coords,
        )
    else:
        image_box = LayoutBox(region.x + image_padding, region.y, inner_width, image_box_height, region.coords)
        text_box = LayoutBox(
            region.x + image_padding,
            region.y + image_height + image_padding,
            inner_width,
            text_box_height,
            region.coords,
        )

    if not with_image or image_ratio == 0:
        return None, text_box
    return image_box, text_box


def plan_lines(
    lines: Sequence[str],
    font: FontSpec,
    line_metrics: LineMetrics,
    text_box: LayoutBox,
    *,
    padding: float,
    advance: LineAdvance,
    image_box: LayoutBox | None = None,
    region: LayoutBox | None = None,
    conditions: Iterable[Condition] = (),
) -> CompositionPlan:
    """Place each line at an absolute baseline inside ``text_box``.

    Lines start ``padding`` inside the box's left and upper edges and move away
    from the upper edge by the line height or the font size, depending on
    ``advance``.
    """
    step = line_metrics.line_height if advance is LineAdvance.LINE_HEIGHT else font.size
    x = text_box.x + padding
    if text_box.coords is CoordinateSystem.BOTTOM_UP:
        baseline = text_box.top - padding - line_metrics.ascent
        step = -step
    else:
        baseline = text_box.top + padding + line_metrics.ascent

    placed: list[PlacedLine] = []
    for line in lines:
        placed.append(PlacedLine(text=line, x=x, baseline=baseline))
        baseline += step

    return CompositionPlan(
        font=font,
        line_metrics=line_metrics,
        lines=tuple(placed),
        text_box=text_box,
        advance=advance,
        image_box=image_box,
        region=region,
        conditions=tuple(conditions),
    )
