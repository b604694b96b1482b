from __future__ import annotations

import math
import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from PIL import Image, ImageChops, ImageColor, ImageDraw

from domain.models import Element

RGBA = tuple[int, int, int, int]

_SLUG_INVALID = re.compile(r"[^a-z0-9\-_.]+")
_SLUG_DASHES = re.compile(r"-+")
_RGBA_FUNCTION = re.compile(
    r"^rgba\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*\)$", re.IGNORECASE
)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_number(value: Any, default: float = 0) -> float:
    return value if is_number(value) else default


def finite_number(value: Any, default: float = 0) -> float:
    if is_number(value) and math.isfinite(value):
        return value
    return default


def first_number(*values: Any, default: float = 0) -> float:
    for value in values:
        if is_number(value):
            return value
    return default


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def nested(element: Element, *keys: str) -> Any:
    current: Any = element
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def element_label(element: Element, fallback: str = "element") -> str:
    return str(element.get("name") or element.get("type") or fallback)


def to_layer_opacity(value: Any) -> int:
    opacity = finite_number(value, 1)
    return round_half_up(min(1.0, max(0.0, opacity)) * 255)


def is_http_url(value: Any) -> bool:
    raw = str(value or "").strip()
    if not raw:
        return False
    parsed = urlparse(raw)
    return parsed.scheme.lower() in {"http", "https"} and bool(parsed.netloc)


def asset_location(source: str, base_dir: Path) -> str:
    if is_http_url(source):
        return source
    return str((base_dir / source).resolve())


def relative_reference(target: Path, start: Path) -> str:
    return os.path.relpath(target.resolve(), start.resolve()).replace("\\", "/")


def slugify_filename(value: Any, fallback: str | None = None) -> str:
    default = fallback or "asset"
    raw = str(value or default).strip().lower()
    slug = _SLUG_DASHES.sub("-", _SLUG_INVALID.sub("-", raw)).strip("-")
    return slug or default


def parse_color(value: Any) -> RGBA:
    """Parse CSS-ish colors: hex (3/4/6/8 digits), names, rgb()/rgba().

    ``rgba()`` accepts a fractional alpha (``rgba(0,0,0,.5)``).
    """
    raw = str(value).strip()
    match = _RGBA_FUNCTION.match(raw)
    if match:
        red, green, blue = (int(float(part)) for part in match.groups()[:3])
        alpha = float(match.group(4))
        alpha_byte = round_half_up(alpha * 255) if alpha <= 1 else int(alpha)
        return (red, green, blue, max(0, min(255, alpha_byte)))
    color = ImageColor.getrgb(raw)
    if len(color) == 3:
        return (color[0], color[1], color[2], 255)
    return (color[0], color[1], color[2], color[3])


def clamp_radius(radius: float, width: float, height: float) -> float:
    return max(0.0, min(float(radius or 0), min(width, height) / 2))


def rounded_box(width: int, height: int) -> tuple[int, int, int, int]:
    return (0, 0, max(0, width - 1), max(0, height - 1))


def rounded_mask(size: tuple[int, int], radius: float) -> Image.Image:
    width, height = size
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    draw.rounded_rectangle(
        rounded_box(width, height), radius=clamp_radius(radius, width, height), fill=255
    )
    return mask


def apply_rounded_clip(image: Image.Image, radius: float) -> Image.Image:
    if radius <= 0:
        return image
    alpha = ImageChops.multiply(image.getchannel("A"), rounded_mask(image.size, radius))
    image.putalpha(alpha)
    return image


def fill_rounded_rect(image: Image.Image, color: RGBA, radius: float) -> None:
    width, height = image.size
    layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).rounded_rectangle(
        rounded_box(width, height), radius=clamp_radius(radius, width, height), fill=color
    )
    image.alpha_composite(layer)


def stroke_rounded_rect(
    image: Image.Image, color: RGBA, stroke_width: float, radius: float
) -> None:
    """Stroke an outline centred on the rect inset by half the stroke width."""
    width, height = image.size
    stroke = max(1, round_half_up(stroke_width))
    inner_radius = max(0.0, radius - stroke_width / 2)
    outer_radius = 0.0
    if radius > 0:
        outer_radius = clamp_radius(inner_radius + stroke_width / 2, width, height)
    layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).rounded_rectangle(
        rounded_box(width, height), radius=outer_radius, outline=color, width=stroke
    )
    image.alpha_composite(layer)
