import pytest

from infostamp.models import FontSpec, LineMetrics


class MonospaceMetrics:
    """Every character is half an em wide; ascent/descent are fixed fractions."""

    def measure_width(self, font: FontSpec, text: str) -> float:
        return len(text) * font.size * 0.5

    def line_metrics(self, font: FontSpec) -> LineMetrics:
        return LineMetrics(ascent=font.size * 0.8, descent=font.size * 0.2, leading=font.size * 0.1)


@pytest.fixture
def mono() -> MonospaceMetrics:
    return MonospaceMetrics()


@pytest.fixture
def font() -> FontSpec:
    return FontSpec(family="Mono", size=10)
