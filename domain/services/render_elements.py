from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

from PIL import Image, ImageDraw

from domain.models import (
    BORDER_TYPES,
    CONTROL_TYPES,
    DEFAULT_TEXT_COLOR,
    IMAGE_TYPES,
    TEXT_TYPES,
    Element,
    Frame,
    Layer,
    element_type,
)
from domain.ports.assets import AssetStore
from domain.services.diagnostics import IMAGE_LOAD_FAILED, INVALID_COLOR, DiagnosticLog
from domain.services.fonts import FontRegistry, normalize_weight
from domain.services.geometry import (
    RGBA,
    apply_rounded_clip,
    fill_rounded_rect,
    finite_number,
    first_number,
    nested,
    parse_color,
    round_half_up,
    stroke_rounded_rect,
    to_layer_opacity,
)
from domain.services.image_loading import load_image
from domain.services.layer_frame import element_font_size, element_text
from domain.services.resolve_assets import image_source

ALIGN_NAMES = {
    "left": "left",
    "center": "center",
    "middle": "center",
    "right": "right",
    "justify": "center",
}
VERTICAL_ALIGN_NAMES = {
    "top": "top",
    "middle": "middle",
    "center": "middle",
    "bottom": "bottom",
}
TEXT_INSET = 4
LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RenderContext:
    store: AssetStore
    base_dir: Path
    fonts: FontRegistry
    diagnostics: DiagnosticLog


def layer_name(element: Element, default: str) -> str:
    return str(element.get("name") or element.get("type") or default)


def resolve_color(
    value: Any, diagnostics: DiagnosticLog, element: str | None = None
) -> RGBA | None:
    if not value:
        return None
    try:
        return parse_color(value)
    except ValueError:
        diagnostics.warn(INVALID_COLOR, f"Ignoring unrecognised color {value!r}", element)
        return None


@dataclass(frozen=True)
class BoxStyle:
    background: RGBA | None
    border: RGBA | None
    radius: float
    stroke_width: float

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> BoxStyle:
        label = element.get("name")
        background = nested(element, "color", "background") or element.get("background")
        border = nested(element, "color", "border") or element.get("border_color")
        return cls(
            background=resolve_color(background, diagnostics, label),
            border=resolve_color(border, diagnostics, label),
            radius=first_number(element.get("border_radius"), element.get("corner_radius")),
            stroke_width=first_number(element.get("border_width"), element.get("stroke_width")),
        )

    @property
    def has_stroke(self) -> bool:
        return self.border is not None and self.stroke_width > 0

    def fill(self, image: Image.Image) -> bool:
        if self.background is None:
            return False
        fill_rounded_rect(image, self.background, self.radius)
        return True

    def stroke(self, image: Image.Image) -> bool:
        if not self.has_stroke or self.border is None:
            return False
        stroke_rounded_rect(image, self.border, self.stroke_width, self.radius)
        return True


@dataclass(frozen=True)
class PlacedLine:
    text: str
    x: float
    y: float  # vertical centre of the line


def layout_text_lines(
    text: str,
    width: float,
    height: float,
    line_height: float,
    align: str = "center",
    vertical_align: str = "middle",
) -> list[PlacedLine]:
    lines = LINE_BREAK.split(text)
    total_height = line_height * len(lines)
    if vertical_align == "top":
        start_y = line_height / 2
    elif vertical_align == "bottom":
        start_y = height - total_height + line_height / 2
    else:
        start_y = height / 2 - total_height / 2 + line_height / 2

    if align == "left":
        x = float(TEXT_INSET)
    elif align == "right":
        x = width - TEXT_INSET
    else:
        x = width / 2
    return [
        PlacedLine(text=line, x=x, y=start_y + index * line_height)
        for index, line in enumerate(lines)
    ]


@dataclass(frozen=True)
class TextStyle:
    text: str
    family: str | None
    size: int
    weight: str
    style: str
    align: str
    vertical_align: str
    line_height: int
    color: RGBA
    font: dict[str, Any]

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> TextStyle:
        font = element.get("font") if isinstance(element.get("font"), dict) else {}
        size = element_font_size(element)
        align_key = str(font.get("alignment") or font.get("justification") or "center").lower()
        vertical_key = str(
            font.get("vertical_alignment") or font.get("verticalAlignment") or "middle"
        ).lower()
        line_height = max(
            size, round_half_up(finite_number(font.get("line_height"), size * 1.25))
        )
        color_value = nested(element, "color", "text") or font.get("color") or DEFAULT_TEXT_COLOR
        color = resolve_color(color_value, diagnostics, element.get("name"))
        return cls(
            text=element_text(element),
            family=str(font["family"]) if font.get("family") else None,
            size=size,
            weight=normalize_weight(font.get("weight")),
            style=str(font.get("style") or "normal").lower(),
            align=ALIGN_NAMES.get(align_key, align_key),
            vertical_align=VERTICAL_ALIGN_NAMES.get(vertical_key, vertical_key),
            line_height=line_height,
            color=color or parse_color(DEFAULT_TEXT_COLOR),
            font=dict(font),
        )

    def draw(self, image: Image.Image, context: RenderContext, element: str | None) -> bool:
        if not self.text:
            return False
        if self.font:
            context.fonts.register(self.font, context.base_dir, context.diagnostics, element)
        resolved = context.fonts.resolve(self.family, self.size, self.weight, self.style)
        anchor = {"left": "lm", "right": "rm"}.get(self.align, "mm")
        draw = ImageDraw.Draw(image)
        for line in layout_text_lines(
            self.text, image.width, image.height, self.line_height, self.align, self.vertical_align
        ):
            if not line.text:
                continue
            draw.text(
                (line.x, line.y),
                line.text,
                fill=self.color,
                font=resolved.font,
                anchor=anchor,
                stroke_width=resolved.stroke_width,
                stroke_fill=self.color,
            )
        return True


@dataclass(frozen=True)
class LayoutElement(ABC):
    type_names: ClassVar[frozenset[str]] = frozenset()
    default_name: ClassVar[str] = "Layer"

    name: str
    opacity: int

    @classmethod
    @abstractmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> LayoutElement: ...

    @abstractmethod
    def render(self, frame: Frame, context: RenderContext) -> Layer | None: ...

    def _layer(self, image: Image.Image, frame: Frame) -> Layer:
        return Layer(name=self.name, image=image, frame=frame, opacity=self.opacity)


@dataclass(frozen=True)
class BorderElement(LayoutElement):
    type_names: ClassVar[frozenset[str]] = BORDER_TYPES
    default_name: ClassVar[str] = "Border"

    box: BoxStyle

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> BorderElement:
        return cls(
            name=layer_name(element, cls.default_name),
            opacity=to_layer_opacity(element.get("opacity")),
            box=BoxStyle.from_element(element, diagnostics),
        )

    def render(self, frame: Frame, context: RenderContext) -> Layer | None:
        image = Image.new("RGBA", frame.size, (0, 0, 0, 0))
        filled = self.box.fill(image)
        stroked = self.box.stroke(image)
        if not (filled or stroked):
            return None
        return self._layer(image, frame)


@dataclass(frozen=True)
class TextElement(LayoutElement):
    type_names: ClassVar[frozenset[str]] = TEXT_TYPES
    default_name: ClassVar[str] = "Text"

    text: TextStyle

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> TextElement:
        return cls(
            name=layer_name(element, cls.default_name),
            opacity=to_layer_opacity(element.get("opacity")),
            text=TextStyle.from_element(element, diagnostics),
        )

    def render(self, frame: Frame, context: RenderContext) -> Layer | None:
        if not self.text.text:
            return None
        image = Image.new("RGBA", frame.size, (0, 0, 0, 0))
        self.text.draw(image, context, self.name)
        return self._layer(image, frame)


@dataclass(frozen=True)
class ControlElement(LayoutElement):
    """Buttons and input boxes: a panel with its caption painted on top."""

    type_names: ClassVar[frozenset[str]] = CONTROL_TYPES
    default_name: ClassVar[str] = "Control"

    panel: BorderElement
    caption: TextElement

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> ControlElement:
        return cls(
            name=layer_name(element, cls.default_name),
            opacity=to_layer_opacity(element.get("opacity")),
            panel=BorderElement.from_element(element, diagnostics),
            caption=TextElement.from_element(element, diagnostics),
        )

    def render(self, frame: Frame, context: RenderContext) -> Layer | None:
        layer = self.panel.render(frame, context)
        if layer is None:
            return self.caption.render(frame, context)
        self.caption.text.draw(layer.image, context, self.name)
        return layer


@dataclass(frozen=True)
class ImageElement(LayoutElement):
    type_names: ClassVar[frozenset[str]] = IMAGE_TYPES
    default_name: ClassVar[str] = "Image"

    source: str
    box: BoxStyle

    @classmethod
    def from_element(cls, element: Element, diagnostics: DiagnosticLog) -> ImageElement:
        return cls(
            name=layer_name(element, cls.default_name),
            opacity=to_layer_opacity(element.get("opacity")),
            source=image_source(element),
            box=BoxStyle.from_element(element, diagnostics),
        )

    def render(self, frame: Frame, context: RenderContext) -> Layer | None:
        if not self.source:
            return None
        try:
            picture = load_image(context.store, self.source, context.base_dir)
        except OSError as exc:
            context.diagnostics.warn(
                IMAGE_LOAD_FAILED, f'Failed to load image "{self.source}": {exc}', self.name
            )
            return None

        image = picture.resize(frame.size, Image.Resampling.LANCZOS)
        apply_rounded_clip(image, self.box.radius)
        self.box.stroke(image)
        return self._layer(image, frame)


ELEMENT_VARIANTS: tuple[type[LayoutElement], ...] = (
    BorderElement,
    TextElement,
    ControlElement,
    ImageElement,
)


def variant_for(kind: str) -> type[LayoutElement]:
    for variant in ELEMENT_VARIANTS:
        if kind in variant.type_names:
            return variant
    return BorderElement


def parse_element(element: Element, diagnostics: DiagnosticLog) -> LayoutElement:
    return variant_for(element_type(element)).from_element(element, diagnostics)


def render_element(element: Element, frame: Frame, context: RenderContext) -> Layer | None:
    return parse_element(element, context.diagnostics).render(frame, context)


