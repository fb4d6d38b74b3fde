from __future__ import annotations

import logging
from typing import Iterable

from infostamp.errors import UnbreakableWordOverflow
from infostamp.models import FontSpec
from infostamp.render.typography import MetricsProvider

LOGGER = logging.getLogger(__name__)


def wrap_text(
    text: str,
    font: FontSpec,
    max_width: float,
    metrics: MetricsProvider,
    overflows: list[UnbreakableWordOverflow] | None = None,
) -> list[str]:
    """Greedy word wrap of ``text`` into lines no wider than ``max_width``.

    A word that is wider than ``max_width`` on its own is emitted unmodified on
    its own line and reported through ``overflows``.
    """
    words = (text or "").split()
    if not words:
        return []

    def _check_word(word: str) -> None:
        width = metrics.measure_width(font, word)
        if width <= max_width:
            return
        LOGGER.warning("unbreakable word %r overflows line budget (%.1f > %.1f)", word, width, max_width)
        if overflows is not None:
            overflows.append(UnbreakableWordOverflow(word=word, width=width, budget=max_width))

    lines: list[str] = []
    current = words[0]
    _check_word(current)
    for word in words[1:]:
        candidate = f"{current} {word}"
        if metrics.measure_width(font, candidate) <= max_width:
            current = candidate
            continue
        lines.append(current)
        current = word
        _check_word(current)
    lines.append(current)
    return lines


def wrap_entries(
    entries: Iterable[str],
    font: FontSpec,
    max_width: float,
    metrics: MetricsProvider,
    overflows: list[UnbreakableWordOverflow] | None = None,
) -> list[str]:
    """Wrap every entry independently and concatenate the results in order."""
    lines: list[str] = []
    for entry in entries:
        lines.extend(wrap_text(entry, font, max_width, metrics, overflows=overflows))
    return lines
