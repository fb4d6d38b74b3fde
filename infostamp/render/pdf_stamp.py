from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Sequence

import pypdf
from pypdf.errors import PdfReadError
from reportlab.pdfgen.canvas import Canvas

from infostamp.errors import InfostampError
from infostamp.models import CompositionPlan, CoordinateSystem, LayoutBox, TextBlock
from infostamp.render.page import ReportLabPageSurface, annotate_region

LOGGER = logging.getLogger(__name__)


class PdfStampError(InfostampError):
    """The input document could not be read or has no such page."""


@dataclass(slots=True)
class StampResult:
    data: bytes
    plan: CompositionPlan
    page_index: int


def _build_overlay(
    page_size: tuple[float, float],
    region: LayoutBox,
    text: TextBlock | Sequence[str],
    image_bytes: bytes | None,
    options: dict,
) -> tuple[pypdf.PageObject, CompositionPlan]:
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=page_size)
    plan = annotate_region(ReportLabPageSurface(canvas), region, text, image_bytes, **options)
    canvas.showPage()
    canvas.save()
    buffer.seek(0)
    return pypdf.PdfReader(buffer).pages[0], plan


def stamp_pdf(
    pdf_bytes: bytes,
    region: LayoutBox | tuple[float, float, float, float],
    text: TextBlock | Sequence[str],
    image_bytes: bytes | None = None,
    *,
    page_index: int = 0,
    **options,
) -> StampResult:
    """Draw a text/image block into ``region`` of one page of a PDF document.

    ``region`` is in PDF points, origin at the bottom-left of the page. The
    block is drawn on a separate overlay page and merged onto the target page;
    the other pages are copied unchanged.
    """
    if not isinstance(region, LayoutBox):
        region = LayoutBox(*region, coords=CoordinateSystem.BOTTOM_UP)
    try:
        reader = pypdf.PdfReader(io.BytesIO(pdf_bytes))
        page_count = len(reader.pages)
    except PdfReadError as exc:
        raise PdfStampError(f"cannot read PDF: {exc}") from exc
    if not 0 <= page_index < page_count:
        raise PdfStampError(f"page index {page_index} out of range, document has {page_count} page(s)")

    writer = pypdf.PdfWriter(clone_from=reader)
    target = writer.pages[page_index]
    box = target.mediabox
    page_size = (float(box.width), float(box.height))
    # Region coordinates are relative to the visible page origin.
    origin = (float(box.left), float(box.bottom))
    if origin != (0.0, 0.0):
        region = LayoutBox(region.x + origin[0], region.y + origin[1], region.width, region.height, region.coords)
        page_size = (origin[0] + page_size[0], origin[1] + page_size[1])

    overlay, plan = _build_overlay(page_size, region, text, image_bytes, options)
    target.merge_page(overlay)
    LOGGER.info("stamped page %d at %s with font size %g", page_index + 1, region.as_tuple(), plan.font.size)

    out = io.BytesIO()
    writer.write(out)
    return StampResult(data=out.getvalue(), plan=plan, page_index=page_index)
