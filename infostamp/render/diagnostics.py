from __future__ import annotations

from typing import TYPE_CHECKING

from PIL import Image

from infostamp.constants import (
    DEBUG_BORDER_WIDTH,
    DEBUG_IMAGE_AREA_COLOR,
    DEBUG_IMAGE_INSET_COLOR,
    DEBUG_REGION_COLOR,
)
from infostamp.models import CompositionPlan, CoordinateSystem, LayoutBox

if TYPE_CHECKING:
    from infostamp.render.page import PageCompositor, PageSurface


def image_area(plan: CompositionPlan) -> LayoutBox | None:
    """Full-width strip of the region from its upper edge down to the image box."""
    if plan.region is None or plan.image_box is None:
        return None
    region = plan.region
    lower = plan.image_box.bottom
    if region.coords is CoordinateSystem.BOTTOM_UP:
        return LayoutBox(region.x, lower, region.width, region.top - lower, region.coords)
    return LayoutBox(region.x, region.top, region.width, lower - region.top, region.coords)


class DebugBorders:
    """Wraps a page compositor and outlines the layout boxes after it draws.

    Strokes the whole region, the image strip and the padded image box so a
    misplaced layout is visible on the page.
    """

    def __init__(self, inner: PageCompositor, line_width: float = DEBUG_BORDER_WIDTH) -> None:
        self.inner = inner
        self.line_width = line_width

    def compose(self, surface: PageSurface, plan: CompositionPlan, image: Image.Image | None = None) -> None:
        self.inner.compose(surface, plan, image)
        boxes: list[tuple[str, LayoutBox]] = []
        if plan.region is not None:
            boxes.append((DEBUG_REGION_COLOR, plan.region))
        area = image_area(plan)
        if area is not None and plan.image_box is not None:
            boxes.append((DEBUG_IMAGE_AREA_COLOR, area))
            boxes.append((DEBUG_IMAGE_INSET_COLOR, plan.image_box))
        surface.set_line_width(self.line_width)
        for color, box in boxes:
            surface.set_stroke_color(color)
            surface.stroke_rect(box)
