import io

import pypdf
import pytest
from PIL import Image
from reportlab.pdfgen.canvas import Canvas

from infostamp.errors import ImageDecodeError, LayoutOverflow
from infostamp.models import CoordinateSystem, FontSpec, LayoutBox, LineAdvance, LineMetrics, TextBlock
from infostamp.layout.planner import partition_region, plan_lines
from infostamp.render.diagnostics import image_area
from infostamp.render.page import annotate_region, plan_region
from infostamp.render.pdf_stamp import PdfStampError, stamp_pdf
from infostamp.template_loader import load_preset

REGION = LayoutBox(100, 100, 200, 200, CoordinateSystem.BOTTOM_UP)
INFO = TextBlock.from_pairs(
    [
        ("Name", "Dat Tran Ba"),
        ("Position", "Software Engineer"),
        ("Company", "dattb.com Vietnam"),
    ]
)


class RecordingSurface:
    """Records every drawing call instead of painting."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def set_font(self, family: str, size: float) -> None:
        self.calls.append(("font", family, size))

    def set_fill_color(self, color: str) -> None:
        self.calls.append(("fill", color))

    def set_stroke_color(self, color: str) -> None:
        self.calls.append(("stroke", color))

    def set_line_width(self, width: float) -> None:
        self.calls.append(("line_width", width))

    def draw_string(self, x: float, y: float, text: str) -> None:
        self.calls.append(("text", x, y, text))

    def draw_image(self, image: Image.Image, box: LayoutBox) -> None:
        self.calls.append(("image", image.size, box))

    def stroke_rect(self, box: LayoutBox) -> None:
        self.calls.append(("rect", box))

    def of(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]


def _png(size: tuple[int, int] = (80, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 20, 20)).save(buffer, format="PNG")
    return buffer.getvalue()


def _blank_pdf(pages: int = 1, size: tuple[float, float] = (300, 300)) -> bytes:
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=size)
    for _ in range(pages):
        canvas.showPage()
    canvas.save()
    return buffer.getvalue()


def test_annotate_region_draws_image_then_text_inside_region() -> None:
    surface = RecordingSurface()
    plan = annotate_region(surface, REGION, ["Signed", "2024-01-01"], _png())

    assert surface.calls[0][0] == "image"
    assert surface.calls[0][2].as_tuple() == pytest.approx((105, 180, 190, 115))
    texts = surface.of("text")
    assert [call[3] for call in texts] == ["Signed", "2024-01-01"]
    assert all(call[1] == pytest.approx(115) for call in texts)
    assert all(REGION.y <= call[2] <= REGION.top for call in texts)
    assert plan.font.size == 20
    assert plan.conditions == ()


def test_annotate_region_lines_step_down_by_font_size() -> None:
    surface = RecordingSurface()
    plan = annotate_region(surface, REGION, ["one", "two", "three"])

    baselines = [call[2] for call in surface.of("text")]
    first = plan.text_box.top - 10 - plan.line_metrics.ascent
    assert baselines[0] == pytest.approx(first)
    assert baselines[1] == pytest.approx(first - plan.font.size)
    assert baselines[2] == pytest.approx(first - 2 * plan.font.size)


def test_annotate_region_without_image_keeps_text_position() -> None:
    with_image = annotate_region(RecordingSurface(), REGION, ["Signed"], _png())
    surface = RecordingSurface()
    without_image = annotate_region(surface, REGION, ["Signed"])

    assert surface.of("image") == []
    assert without_image.image_box is None
    assert without_image.lines == with_image.lines


def test_annotate_region_reports_overflow_when_wrapped_lines_do_not_fit() -> None:
    surface = RecordingSurface()
    plan = annotate_region(surface, REGION, INFO)

    assert plan.font.size == 15
    words = " ".join(call[3] for call in surface.of("text")).split()
    assert words == " ".join(INFO.lines()).split()
    if len(plan.lines) * plan.font.size > plan.text_box.height - 20:
        assert any(isinstance(c, LayoutOverflow) for c in plan.conditions)


def test_debug_borders_outline_region_image_area_and_inset() -> None:
    surface = RecordingSurface()
    plan = annotate_region(surface, REGION, ["Signed"], _png(), debug_borders=True)

    strokes = [call for call in surface.calls if call[0] in {"stroke", "rect"}]
    assert [call[1] for call in strokes[0::2]] == ["#FF0000", "#000000", "#FFFF00"]
    boxes = [call[1] for call in strokes[1::2]]
    assert boxes[0] == REGION
    assert boxes[1] == image_area(plan)
    assert boxes[1].as_tuple() == pytest.approx((100, 180, 200, 120))
    assert boxes[2] == plan.image_box
    # outlines are drawn over the content
    assert surface.calls.index(("line_width", 1)) > surface.calls.index(surface.of("text")[-1])


def test_debug_borders_without_image_outline_region_only() -> None:
    surface = RecordingSurface()
    annotate_region(surface, REGION, ["Signed"], debug_borders=True)

    assert surface.of("stroke") == [("stroke", "#FF0000")]
    assert surface.of("rect") == [("rect", REGION)]


def test_annotate_region_rejects_undecodable_image() -> None:
    with pytest.raises(ImageDecodeError):
        annotate_region(RecordingSurface(), REGION, ["Signed"], b"not a png")


def test_plan_region_requires_bottom_up_region() -> None:
    with pytest.raises(ValueError):
        plan_region(LayoutBox(0, 0, 100, 100, CoordinateSystem.TOP_DOWN), ["x"])


def test_stamp_pdf_merges_text_onto_target_page() -> None:
    result = stamp_pdf(_blank_pdf(pages=2), (20, 20, 200, 200), ["Signed by Dat"], _png(), page_index=1)

    reader = pypdf.PdfReader(io.BytesIO(result.data))
    assert len(reader.pages) == 2
    assert "Signed" not in (reader.pages[0].extract_text() or "")
    assert "Signed" in reader.pages[1].extract_text()
    assert result.page_index == 1
    assert result.plan.region == LayoutBox(20, 20, 200, 200, CoordinateSystem.BOTTOM_UP)


def test_stamp_pdf_rejects_missing_page() -> None:
    with pytest.raises(PdfStampError):
        stamp_pdf(_blank_pdf(), (20, 20, 200, 200), ["x"], page_index=3)


def test_stamp_pdf_rejects_unreadable_document() -> None:
    with pytest.raises(PdfStampError):
        stamp_pdf(b"this is not a pdf", (20, 20, 200, 200), ["x"])


def test_text_only_preset_fits_short_lines_in_region_height() -> None:
    region = LayoutBox(0, 0, 300, 60, CoordinateSystem.BOTTOM_UP)
    plan = plan_region(region, ["Name: A", "Role: B", "Org: C"], **load_preset("text-only").region_options())

    budget = plan.text_box.height - 2 * 5
    assert plan.image_box is None
    assert 3 * plan.font.size <= budget
    assert not any(isinstance(c, LayoutOverflow) for c in plan.conditions)
    assert all(region.y <= line.baseline <= region.top for line in plan.lines)


def test_image_area_follows_coordinate_system() -> None:
    region = LayoutBox(0, 0, 400, 100, CoordinateSystem.TOP_DOWN)
    image_box, text_box = partition_region(region, image_ratio=0.3, image_padding=5)
    plan = plan_lines(
        ["x"],
        FontSpec(family="Arial", size=10),
        LineMetrics(ascent=8, descent=2),
        text_box,
        padding=5,
        advance=LineAdvance.LINE_HEIGHT,
        image_box=image_box,
        region=region,
    )

    assert image_area(plan).as_tuple() == pytest.approx((0, 0, 400, 25))
