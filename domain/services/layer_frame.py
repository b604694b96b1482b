from __future__ import annotations

from domain.models import (
    DEFAULT_FONT_SIZE,
    DEFAULT_PLACEHOLDER_SIZE,
    IMAGE_TYPES,
    TEXT_TYPES,
    Element,
    Frame,
    element_type,
)
from domain.services.geometry import finite_number, nested, round_half_up

MIN_TEXT_WIDTH = 128
MAX_TEXT_WIDTH = 1400
MIN_TEXT_HEIGHT = 48
MIN_IMAGE_FALLBACK = 128
DEFAULT_FALLBACK_SIZE = 256


def element_text(element: Element) -> str:
    value = element.get("content")
    if value is None:
        value = element.get("text")
    return "" if value is None else str(value)


def element_font_size(element: Element) -> int:
    return max(1, round_half_up(finite_number(nested(element, "font", "size"), DEFAULT_FONT_SIZE)))


def fallback_size(element: Element) -> tuple[int, int]:
    kind = element_type(element)
    if kind in TEXT_TYPES:
        font_size = element_font_size(element)
        glyph_width = max(12, round_half_up(font_size * 0.6))
        width = max(MIN_TEXT_WIDTH, min(MAX_TEXT_WIDTH, len(element_text(element)) * glyph_width))
        return width, max(MIN_TEXT_HEIGHT, round_half_up(font_size * 1.6))
    if kind in IMAGE_TYPES:
        preferred_width = finite_number(element.get("preferred_width"), DEFAULT_PLACEHOLDER_SIZE)
        preferred_height = finite_number(element.get("preferred_height"), DEFAULT_PLACEHOLDER_SIZE)
        return (
            max(MIN_IMAGE_FALLBACK, round_half_up(preferred_width)),
            max(MIN_IMAGE_FALLBACK, round_half_up(preferred_height)),
        )
    return DEFAULT_FALLBACK_SIZE, DEFAULT_FALLBACK_SIZE


def build_layer_frame(element: Element, offset_x: float, offset_y: float) -> Frame | None:
    """Absolute pixel frame for ``element`` on the canvas, or None when empty."""
    fallback_width, fallback_height = fallback_size(element)
    width = round_half_up(finite_number(nested(element, "size", "width"), fallback_width))
    height = round_half_up(finite_number(nested(element, "size", "height"), fallback_height))
    if width <= 0 or height <= 0:
        return None

    return Frame(
        width=width,
        height=height,
        left=round_half_up(finite_number(nested(element, "position", "x"), 0) + offset_x),
        top=round_half_up(finite_number(nested(element, "position", "y"), 0) + offset_y),
    )
