from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from PIL import Image
from pydantic import BaseModel, Field, field_validator

Element = dict[str, Any]
PlaceholderStyle = Literal["gradient", "solid", "checker"]

DEFAULT_MARGIN = 64
DEFAULT_IMAGE_LAYOUT_MARGIN = 24
MAX_MARGIN = 4096
DEFAULT_PLACEHOLDER_SIZE = 256
FALLBACK_EXTENT_WIDTH = 1024
FALLBACK_EXTENT_HEIGHT = 768
DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_SIZE = 24
DEFAULT_TEXT_COLOR = "#ffffff"
DEFAULT_BORDER_BACKGROUND = "#1A1A1A"
DEFAULT_BORDER_STROKE = "#333333"

BORDER_TYPES = frozenset({"border", "panel", "rectangle", "box"})
TEXT_TYPES = frozenset({"text", "textblock", "richtextblock"})
CONTROL_TYPES = frozenset(
    {"button", "editabletextbox", "textbox", "input", "textfield", "textarea"}
)
IMAGE_TYPES = frozenset({"image", "texture", "brush"})


def element_type(element: Element) -> str:
    return str(element.get("type") or "").lower()


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    width: int
    height: int
    margin: int
    offset_x: float
    offset_y: float

    def to_dict(self) -> dict[str, float]:
        return {
            "minX": self.min_x,
            "minY": self.min_y,
            "maxX": self.max_x,
            "maxY": self.max_y,
            "width": self.width,
            "height": self.height,
            "margin": self.margin,
            "offsetX": self.offset_x,
            "offsetY": self.offset_y,
        }


@dataclass(frozen=True)
class Frame:
    width: int
    height: int
    left: int
    top: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class Layer:
    name: str
    image: Image.Image
    frame: Frame
    opacity: int  # 0..255

    @property
    def left(self) -> int:
        return self.frame.left

    @property
    def top(self) -> int:
        return self.frame.top

    @property
    def right(self) -> int:
        return self.frame.right

    @property
    def bottom(self) -> int:
        return self.frame.bottom


@dataclass(frozen=True)
class LayeredDocument:
    width: int
    height: int
    # Top-most layer first.
    children: list[Layer] = field(default_factory=list)


@dataclass(frozen=True)
class PlaceholderRecord:
    element: str
    placeholder_path: Path

    def to_dict(self) -> dict[str, str]:
        return {"element": self.element, "placeholderPath": str(self.placeholder_path)}


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    element: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"code": self.code, "message": self.message, "element": self.element}


@dataclass(frozen=True)
class AssetResolution:
    elements: list[Element]
    placeholders: list[PlaceholderRecord]
    diagnostics: list[Diagnostic]


@dataclass(frozen=True)
class Composition:
    document: LayeredDocument
    bounds: Bounds
    layer_count: int
    diagnostics: list[Diagnostic]


@dataclass(frozen=True)
class CompositionOutcome:
    document: LayeredDocument
    bounds: Bounds
    layer_count: int
    placeholders: list[PlaceholderRecord]
    diagnostics: list[Diagnostic]
    elements: list[Element]


def _round_margin(value: object) -> object:
    # Halves round up.
    if isinstance(value, float) and math.isfinite(value):
        return math.floor(value + 0.5)
    return value


class CompositionRequest(BaseModel):
    elements: list[Any]
    margin: int = Field(DEFAULT_MARGIN, ge=0, le=MAX_MARGIN)
    assets_dir: Path
    layout_dir: Path
    placeholder_style: PlaceholderStyle = "gradient"
    placeholder_label: str | None = None

    @field_validator("margin", mode="before")
    @classmethod
    def round_margin(cls, value: object) -> object:
        return _round_margin(value)


class PipelineRequest(BaseModel):
    json_path: Path
    output_dir: Path | None = None
    assets_dir: Path | None = None
    placeholder_style: PlaceholderStyle = "gradient"
    placeholder_label: str | None = Field(default=None, min_length=1)
    overwrite_json: bool = False
    psd_filename: str | None = Field(default=None, min_length=1)
    margin: int = Field(DEFAULT_MARGIN, ge=0, le=MAX_MARGIN)

    @field_validator("margin", mode="before")
    @classmethod
    def round_margin(cls, value: object) -> object:
        return _round_margin(value)


@dataclass(frozen=True)
class PipelineResult:
    updated_json_path: Path
    psd_path: Path
    layer_count: int
    bounds: Bounds
    placeholders: list[PlaceholderRecord]
    diagnostics: list[Diagnostic]

    def to_dict(self) -> dict[str, Any]:
        return {
            "updatedJsonPath": str(self.updated_json_path),
            "psdPath": str(self.psd_path),
            "layerCount": self.layer_count,
            "bounds": self.bounds.to_dict(),
            "placeholders": [record.to_dict() for record in self.placeholders],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }


class ImageLayoutRequest(BaseModel):
    image_path: str = Field(..., min_length=1)
    output_json: Path | None = None
    assets_dir: Path | None = None
    include_border: bool = True
    margin: float = Field(DEFAULT_IMAGE_LAYOUT_MARGIN, ge=0, le=MAX_MARGIN)
    position_x: float = 0
    position_y: float = 0
    border_radius: float = Field(0, ge=0, le=1024)
    background_color: str = Field(DEFAULT_BORDER_BACKGROUND, min_length=1)
    border_color: str = Field(DEFAULT_BORDER_STROKE, min_length=1)
    container_name: str | None = Field(default=None, min_length=1)
    image_name: str | None = Field(default=None, min_length=1)


@dataclass(frozen=True)
class ImageLayoutResult:
    json_path: Path
    width: int
    height: int
    elements: int
    include_border: bool
    image_reference: str
    copied_asset_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "jsonPath": str(self.json_path),
            "width": self.width,
            "height": self.height,
            "elements": self.elements,
            "includeBorder": self.include_border,
            "imageReference": self.image_reference,
            "copiedAssetPath": str(self.copied_asset_path) if self.copied_asset_path else None,
        }
