from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import ImageFont

from domain.models import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE
from domain.services.diagnostics import FONT_NOT_FOUND, FONT_REGISTRATION_FAILED, DiagnosticLog

AnyFont = ImageFont.FreeTypeFont | ImageFont.ImageFont

WEIGHT_NAMES = {
    "thin": "100",
    "extralight": "200",
    "ultralight": "200",
    "light": "300",
    "regular": "400",
    "normal": "400",
    "medium": "500",
    "semibold": "600",
    "demibold": "600",
    "bold": "700",
    "extrabold": "800",
    "ultrabold": "800",
    "black": "900",
    "heavy": "900",
}
BOLD_THRESHOLD = 600
# Pillow raises ValueError or TypeError for names it cannot encode, e.g. with NUL bytes.
FONT_LOAD_ERRORS = (OSError, ValueError, TypeError)
DEFAULT_FALLBACK_FONTS = (
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
)
DEFAULT_BOLD_FALLBACK_FONTS = (
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
)


def normalize_weight(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    key = str(value or "normal").strip().lower()
    return WEIGHT_NAMES.get(key, key) or "400"


def is_bold_weight(weight: str) -> bool:
    if weight.isdigit():
        return int(weight) >= BOLD_THRESHOLD
    return "bold" in weight or weight in {"black", "heavy"}


def as_path_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item]
    return [str(value)] if value else []


@dataclass(frozen=True)
class ResolvedFont:
    font: AnyFont
    size: int
    faux_bold: bool = False

    @property
    def stroke_width(self) -> int:
        return max(1, round(self.size / 32)) if self.faux_bold else 0


class FontRegistry:
    def __init__(
        self,
        default_family: str = DEFAULT_FONT_FAMILY,
        fallback_paths: Sequence[str] = DEFAULT_FALLBACK_FONTS,
        bold_fallback_paths: Sequence[str] = DEFAULT_BOLD_FALLBACK_FONTS,
    ) -> None:
        self.default_family = default_family
        self.fallback_paths = tuple(fallback_paths)
        self.bold_fallback_paths = tuple(bold_fallback_paths)
        self._families: dict[str, list[Path]] = {}
        self._cache: dict[tuple[str, int, bool, bool], ResolvedFont] = {}

    def register(
        self,
        font: dict[str, Any],
        base_dir: Path | None,
        diagnostics: DiagnosticLog,
        element: str | None = None,
    ) -> None:
        paths = as_path_list(font.get("paths") or font.get("path") or font.get("file"))
        family = str(font.get("family") or self.default_family)
        for raw_path in paths:
            path = Path(raw_path)
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            try:
                path = path.resolve()
                found = path.exists()
            except (OSError, ValueError):
                found = False
            if not found:
                diagnostics.warn(FONT_NOT_FOUND, f"Font file not found: {path}", element)
                continue
            try:
                ImageFont.truetype(str(path), size=12)
            except FONT_LOAD_ERRORS as exc:
                diagnostics.warn(
                    FONT_REGISTRATION_FAILED, f"Failed to register font {path}: {exc}", element
                )
                continue
            registered = self._families.setdefault(family.lower(), [])
            if path not in registered:
                registered.append(path)
                self._cache = {
                    key: value for key, value in self._cache.items() if key[0] != family.lower()
                }

    def resolve(
        self,
        family: str | None,
        size: int,
        weight: str = "400",
        style: str = "normal",
    ) -> ResolvedFont:
        family_name = (family or self.default_family).strip() or self.default_family
        bold = is_bold_weight(weight)
        italic = style in {"italic", "oblique"}
        key = (family_name.lower(), size, bold, italic)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolved = self._load(family_name, size, bold, italic)
        self._cache[key] = resolved
        return resolved

    def _load(self, family: str, size: int, bold: bool, italic: bool) -> ResolvedFont:
        registered = self._families.get(family.lower(), [])
        if registered:
            path, has_bold = _pick_registered(registered, bold, italic)
            font = _try_truetype([str(path)], size)
            if font is not None:
                return ResolvedFont(font=font, size=size, faux_bold=bold and not has_bold)

        if bold:
            font = _try_truetype(_system_candidates(family, "Bold"), size)
            if font is None:
                font = _try_truetype(self.bold_fallback_paths, size)
            if font is not None:
                return ResolvedFont(font=font, size=size)

        font = _try_truetype(_system_candidates(family, "Italic" if italic else ""), size)
        if font is None:
            font = _try_truetype(self.fallback_paths, size)
        if font is None:
            try:
                font = ImageFont.load_default(size=size)
            except OSError:
                # FreeType rejects pixel sizes it cannot rasterize.
                font = ImageFont.load_default()
                size = int(getattr(font, "size", DEFAULT_FONT_SIZE))
        return ResolvedFont(font=font, size=size, faux_bold=bold)


def _pick_registered(paths: list[Path], bold: bool, italic: bool) -> tuple[Path, bool]:
    def score(path: Path) -> int:
        name = path.stem.lower()
        value = 0
        if bold == ("bold" in name):
            value += 2
        if italic == ("italic" in name or "oblique" in name):
            value += 1
        return value

    best = max(paths, key=score)
    return best, "bold" in best.stem.lower()


def _system_candidates(family: str, variant: str) -> list[str]:
    compact = family.replace(" ", "")
    if not variant:
        return [family, compact]
    return [f"{family} {variant}", f"{compact}-{variant}", f"{compact}{variant}"]


def _try_truetype(candidates: Iterable[str], size: int) -> ImageFont.FreeTypeFont | None:
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size=size)
        except FONT_LOAD_ERRORS:
            continue
    return None
