"""Auto-fitting key/value text stamps for raster images and PDF pages."""

from infostamp.errors import (
    FontUnavailableError,
    ImageDecodeError,
    InfostampError,
    LayoutOverflow,
    UnbreakableWordOverflow,
)
from infostamp.models import CompositionPlan, CoordinateSystem, FontSpec, LayoutBox, TextBlock
from infostamp.render.page import ReportLabPageSurface, annotate_region
from infostamp.render.pdf_stamp import stamp_pdf
from infostamp.render.raster import annotate_base64_image, annotate_image, compose_image

__version__ = "0.1.0"

__all__ = [
    "CompositionPlan",
    "CoordinateSystem",
    "FontSpec",
    "FontUnavailableError",
    "ImageDecodeError",
    "InfostampError",
    "LayoutBox",
    "LayoutOverflow",
    "ReportLabPageSurface",
    "TextBlock",
    "UnbreakableWordOverflow",
    "annotate_base64_image",
    "annotate_image",
    "annotate_region",
    "compose_image",
    "stamp_pdf",
]
