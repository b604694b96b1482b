from __future__ import annotations

import io
import math
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw

from domain.models import DEFAULT_FONT_FAMILY, PlaceholderStyle
from domain.ports.assets import AssetStore
from domain.services.fonts import FontRegistry
from domain.services.geometry import apply_rounded_clip, parse_color, round_half_up

CHECKER_CELL = 20
CHECKER_COLORS = ("#bdbdbd", "#e0e0e0")
GRADIENT_START = "#2b2b2b"
GRADIENT_END = "#515151"
DEFAULT_SOLID_COLOR = "#666666"
STRIPE_PITCH = 24
STRIPE_WIDTH = 2
STRIPE_OPACITY = 0.15
LABEL_BAND_HEIGHT = 44
LABEL_BAND_COLOR = (0, 0, 0, 128)
LABEL_TEXT_COLOR = (255, 255, 255, 255)
MIN_LABEL_FONT_SIZE = 14


@dataclass(frozen=True)
class PlaceholderSpec:
    width: float
    height: float
    style: PlaceholderStyle = "gradient"
    solid_color: str = DEFAULT_SOLID_COLOR
    label: str | None = "Image"
    border_radius: float = 12

    @property
    def pixel_size(self) -> tuple[int, int]:
        return (max(1, math.floor(self.width)), max(1, math.floor(self.height)))


def render_placeholder(spec: PlaceholderSpec, fonts: FontRegistry | None = None) -> Image.Image:
    width, height = spec.pixel_size
    if spec.style == "checker":
        image = _checker(width, height)
    elif spec.style == "solid":
        image = Image.new("RGBA", (width, height), parse_color(spec.solid_color))
    else:
        image = _diagonal_gradient(width, height)

    _draw_stripes(image)
    if spec.label is not None:
        _draw_label(image, spec.label or "Image", fonts or FontRegistry())
    return apply_rounded_clip(image, spec.border_radius)


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class PlaceholderGenerator:
    def __init__(
        self,
        store: AssetStore,
        font_factory: Callable[[], FontRegistry] = FontRegistry,
    ) -> None:
        self.store = store
        self.font_factory = font_factory

    def generate(self, spec: PlaceholderSpec, out_path: Path) -> Path:
        image = render_placeholder(spec, self.font_factory())
        return self.store.write_bytes(out_path, encode_png(image))


def _checker(width: int, height: int) -> Image.Image:
    image = Image.new("RGBA", (width, height))
    draw = ImageDraw.Draw(image)
    dark, light = (parse_color(color) for color in CHECKER_COLORS)
    for y in range(0, height, CHECKER_CELL):
        for x in range(0, width, CHECKER_CELL):
            fill = dark if ((x + y) // CHECKER_CELL) % 2 == 0 else light
            draw.rectangle((x, y, x + CHECKER_CELL - 1, y + CHECKER_CELL - 1), fill=fill)
    return image


def _diagonal_gradient(width: int, height: int) -> Image.Image:
    # t(x, y) = (x*w + y*h) / (w^2 + h^2), i.e. projection onto the top-left to
    # bottom-right diagonal, built from a horizontal and a vertical ramp.
    ramp = Image.linear_gradient("L")
    vertical = ramp.resize((width, height), Image.Resampling.BILINEAR)
    horizontal = ramp.transpose(Image.Transpose.ROTATE_90).resize(
        (width, height), Image.Resampling.BILINEAR
    )
    vertical_share = (height * height) / float(width * width + height * height)
    mask = Image.blend(horizontal, vertical, vertical_share)
    start = Image.new("RGBA", (width, height), parse_color(GRADIENT_START))
    end = Image.new("RGBA", (width, height), parse_color(GRADIENT_END))
    return Image.composite(end, start, mask)


def _draw_stripes(image: Image.Image) -> None:
    width, height = image.size
    overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    stripe = (255, 255, 255, round_half_up(STRIPE_OPACITY * 255))
    for offset in range(-height, width, STRIPE_PITCH):
        draw.line((offset, 0, offset + height, height), fill=stripe, width=STRIPE_WIDTH)
    image.alpha_composite(overlay)


def _draw_label(image: Image.Image, text: str, fonts: FontRegistry) -> None:
    width, height = image.size
    overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    band_top = round_half_up(height / 2 - LABEL_BAND_HEIGHT / 2)
    draw.rectangle(
        (0, band_top, width - 1, band_top + LABEL_BAND_HEIGHT - 1), fill=LABEL_BAND_COLOR
    )
    image.alpha_composite(overlay)

    font_size = max(MIN_LABEL_FONT_SIZE, math.floor(min(width, height) * 0.12))
    resolved = fonts.resolve(DEFAULT_FONT_FAMILY, font_size, weight="700")
    ImageDraw.Draw(image).text(
        (width / 2, height / 2),
        text,
        fill=LABEL_TEXT_COLOR,
        font=resolved.font,
        anchor="mm",
        stroke_width=resolved.stroke_width,
        stroke_fill=LABEL_TEXT_COLOR,
    )
