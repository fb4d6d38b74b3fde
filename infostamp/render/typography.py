from __future__ import annotations

import logging
import os
import platform
import re
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from PIL import ImageFont
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from infostamp.constants import PAGE_FONT_FAMILY
from infostamp.errors import FontUnavailableError
from infostamp.models import FontSpec, LineMetrics

LOGGER = logging.getLogger(__name__)

_FONT_FILE_SUFFIXES = {".ttf", ".ttc", ".otf", ".otc"}
_NAME_NOISE = re.compile(r"[\s_\-]+")


class MetricsProvider(Protocol):
    def measure_width(self, font: FontSpec, text: str) -> float: ...

    def line_metrics(self, font: FontSpec) -> LineMetrics: ...


def _system_font_candidates() -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\arial.ttf"),
            Path(r"C:\Windows\Fonts\segoeui.ttf"),
            Path(r"C:\Windows\Fonts\msyh.ttc"),
        ]
    if "darwin" in system:
        return [
            Path("/Library/Fonts/Arial.ttf"),
            Path("/System/Library/Fonts/Supplemental/Arial.ttf"),
            Path("/System/Library/Fonts/Helvetica.ttc"),
        ]
    return [
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
        Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
    ]


def _system_font_directories() -> list[Path]:
    system = platform.system().lower()
    roots: list[Path] = []
    if "windows" in system:
        windows_dir = Path(os.environ.get("WINDIR", r"C:\Windows"))
        roots.append(windows_dir / "Fonts")
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            roots.append(Path(local_app_data) / "Microsoft" / "Windows" / "Fonts")
    elif "darwin" in system:
        roots.extend(
            [
                Path("/System/Library/Fonts"),
                Path("/Library/Fonts"),
                Path.home() / "Library" / "Fonts",
            ]
        )
    else:
        roots.extend(
            [
                Path("/usr/share/fonts"),
                Path("/usr/local/share/fonts"),
                Path.home() / ".fonts",
                Path.home() / ".local" / "share" / "fonts",
            ]
        )
    return roots


@lru_cache(maxsize=1)
def list_available_font_paths() -> list[Path]:
    available: list[Path] = []
    seen: set[str] = set()

    for root in _system_font_directories():
        try:
            if not root.is_dir():
                continue
        except OSError:
            continue

        for dir_path, _dir_names, file_names in os.walk(root, onerror=lambda _err: None):
            for file_name in file_names:
                if Path(file_name).suffix.lower() not in _FONT_FILE_SUFFIXES:
                    continue
                candidate = Path(dir_path) / file_name
                key = str(candidate).lower()
                if key in seen:
                    continue
                seen.add(key)
                available.append(candidate)

    available.sort(key=lambda path: (path.stem.lower(), str(path).lower()))
    return available


def _normalize_family(name: str) -> str:
    return _NAME_NOISE.sub("", name).lower()


def find_font_path(family: str) -> Path:
    """Resolve a family name (or a font file path) to a font file.

    Regular faces win over styled ones: ``"DejaVu Sans"`` matches
    ``DejaVuSans.ttf`` before ``DejaVuSans-Bold.ttf``.
    """
    clean = (family or "").strip()
    if not clean:
        raise FontUnavailableError(family, "empty family name")
    as_path = Path(clean).expanduser()
    if as_path.suffix.lower() in _FONT_FILE_SUFFIXES:
        if as_path.is_file():
            return as_path
        raise FontUnavailableError(family, "font file does not exist")

    wanted = _normalize_family(clean)
    prefixed: list[Path] = []
    for candidate in list_available_font_paths():
        stem = _normalize_family(candidate.stem)
        if stem in (wanted, f"{wanted}regular"):
            return candidate
        if stem.startswith(wanted):
            prefixed.append(candidate)
    if prefixed:
        return min(prefixed, key=lambda path: len(path.stem))
    raise FontUnavailableError(family)


@lru_cache(maxsize=256)
def _truetype(path: str, size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(path, size=size)


@lru_cache(maxsize=64)
def _fallback_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for candidate in _system_font_candidates():
        if candidate.exists():
            try:
                return _truetype(str(candidate), size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


def pixel_size(size: float) -> int:
    """Whole-pixel size Pillow renders ``size`` at. Fractions are dropped, never rounded up."""
    return max(1, int(size))


def load_font(font: FontSpec) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a Pillow font for ``font``, falling back to a platform default."""
    size = pixel_size(font.size)
    try:
        path = find_font_path(font.family)
        return _truetype(str(path), size)
    except (FontUnavailableError, OSError) as exc:
        _warn_fallback(font.family, str(exc))
    return _fallback_font(size)


@lru_cache(maxsize=64)
def _warn_fallback(family: str, reason: str) -> None:
    # Cached so a missing family is reported once, not once per trial size.
    LOGGER.warning("%s; using fallback font for %r", reason, family)


class PillowMetrics:
    """Pixel metrics from Pillow fonts. Pillow reports no leading, so it is 0."""

    def measure_width(self, font: FontSpec, text: str) -> float:
        if not text:
            return 0.0
        return float(load_font(font).getlength(text))

    def line_metrics(self, font: FontSpec) -> LineMetrics:
        loaded = load_font(font)
        if isinstance(loaded, ImageFont.FreeTypeFont):
            ascent, descent = loaded.getmetrics()
            return LineMetrics(ascent=float(ascent), descent=float(descent))
        left, top, right, bottom = loaded.getbbox("Ag")
        return LineMetrics(ascent=float(max(1, bottom - top)), descent=0.0)


def resolve_pdf_font(family: str, fallback: str = PAGE_FONT_FAMILY) -> str:
    """Return a reportlab font name usable with ``setFont`` for ``family``.

    Standard PDF fonts and registered fonts are used as is; other families are
    looked up on disk and registered as TrueType fonts on first use.
    """
    name = (family or "").strip()
    if name in pdfmetrics.standardFonts or name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        path = find_font_path(name)
        registered = _normalize_family(path.stem)
        if registered not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(registered, str(path)))
        return registered
    except (FontUnavailableError, OSError, TTFError) as exc:
        _warn_fallback(family, str(exc))
    return fallback


class ReportLabMetrics:
    """Point metrics from reportlab, for drawing on PDF pages."""

    def __init__(self, fallback: str = PAGE_FONT_FAMILY) -> None:
        self.fallback = fallback

    def font_name(self, font: FontSpec) -> str:
        return resolve_pdf_font(font.family, fallback=self.fallback)

    def measure_width(self, font: FontSpec, text: str) -> float:
        if not text:
            return 0.0
        return float(pdfmetrics.stringWidth(text, self.font_name(font), font.size))

    def line_metrics(self, font: FontSpec) -> LineMetrics:
        ascent, descent = pdfmetrics.getAscentDescent(self.font_name(font), font.size)
        return LineMetrics(ascent=float(ascent), descent=float(abs(descent)))
