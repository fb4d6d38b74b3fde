import logging

import pytest

from infostamp.errors import FontUnavailableError
from infostamp.models import FontSpec
from infostamp.render import typography
from infostamp.render.typography import (
    PillowMetrics,
    ReportLabMetrics,
    find_font_path,
    load_font,
    pixel_size,
    resolve_pdf_font,
)


def test_find_font_path_rejects_missing_font_file(tmp_path) -> None:
    with pytest.raises(FontUnavailableError):
        find_font_path(str(tmp_path / "missing.ttf"))


def test_find_font_path_rejects_unknown_family() -> None:
    with pytest.raises(FontUnavailableError):
        find_font_path("Definitely Not Installed Family 9000")


def test_load_font_falls_back_and_warns_once(caplog) -> None:
    typography._warn_fallback.cache_clear()
    family = "Definitely Not Installed Family 9000"
    with caplog.at_level(logging.WARNING, logger="infostamp.render.typography"):
        first = load_font(FontSpec(family=family, size=14))
        load_font(FontSpec(family=family, size=15))

    assert first is not None
    warnings = [record for record in caplog.records if family in record.getMessage()]
    assert len(warnings) == 1


def test_pillow_metrics_grow_with_size() -> None:
    metrics = PillowMetrics()
    small = FontSpec(family="Arial", size=10)
    large = small.with_size(30)

    assert metrics.measure_width(small, "") == 0
    assert metrics.measure_width(large, "Dat Tran Ba") > metrics.measure_width(small, "Dat Tran Ba")
    assert metrics.line_metrics(large).line_height > metrics.line_metrics(small).line_height
    assert metrics.line_metrics(small).leading == 0


def test_resolve_pdf_font_keeps_standard_fonts() -> None:
    assert resolve_pdf_font("Helvetica") == "Helvetica"
    assert resolve_pdf_font("Times-Roman") == "Times-Roman"


def test_resolve_pdf_font_falls_back_to_helvetica() -> None:
    assert resolve_pdf_font("Definitely Not Installed Family 9000") == "Helvetica"
    assert resolve_pdf_font("Definitely Not Installed Family 9000", fallback="Courier") == "Courier"


def test_reportlab_metrics_match_helvetica_widths() -> None:
    metrics = ReportLabMetrics()
    font = FontSpec(family="Helvetica", size=10)

    # Helvetica "0" is 556/1000 em
    assert metrics.measure_width(font, "00") == pytest.approx(11.12)
    line = metrics.line_metrics(font)
    assert line.ascent > 0
    assert line.descent > 0
    assert line.leading == 0


def test_pixel_size_drops_fractions() -> None:
    assert pixel_size(12.5) == 12
    assert pixel_size(13.5) == 13
    assert pixel_size(12.99) == 12
    assert pixel_size(0.4) == 1


def test_pillow_metrics_measure_at_pixel_size() -> None:
    metrics = PillowMetrics()
    text = "Position: Software Engineer"
    assert metrics.measure_width(FontSpec(family="Arial", size=12.5), text) == metrics.measure_width(
        FontSpec(family="Arial", size=12), text
    )
