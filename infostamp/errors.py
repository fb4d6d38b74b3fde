from __future__ import annotations

from dataclasses import dataclass


class InfostampError(Exception):
    """Base class for errors raised by infostamp."""


class ImageDecodeError(InfostampError):
    """Image bytes (or their Base64 wrapping) could not be decoded."""


class FontUnavailableError(InfostampError):
    """The requested font family could not be located.

    Metrics providers catch this and fall back to their default family, so it
    never reaches callers of the public entry points.
    """

    def __init__(self, family: str, reason: str | None = None) -> None:
        self.family = family
        message = f"font family not available: {family!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class LayoutOverflow:
    """Text does not fit its budget even at the smallest allowed font size."""

    required: float
    available: float
    font_size: float

    def describe(self) -> str:
        return (
            f"text needs {self.required:.1f} but only {self.available:.1f} is available "
            f"at font size {self.font_size:g}"
        )


@dataclass(frozen=True, slots=True)
class UnbreakableWordOverflow:
    """A single word is wider than the line budget and is rendered unclipped."""

    word: str
    width: float
    budget: float

    def describe(self) -> str:
        return f"word {self.word!r} is {self.width:.1f} wide, line budget is {self.budget:.1f}"


Condition = LayoutOverflow | UnbreakableWordOverflow
