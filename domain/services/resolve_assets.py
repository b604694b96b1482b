from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from domain.models import (
    DEFAULT_PLACEHOLDER_SIZE,
    AssetResolution,
    Element,
    PlaceholderRecord,
    PlaceholderStyle,
    element_type,
)
from domain.ports.assets import AssetStore
from domain.services.diagnostics import IMAGE_PROBE_FAILED, DiagnosticLog
from domain.services.generate_placeholder import PlaceholderGenerator, PlaceholderSpec
from domain.services.geometry import (
    finite_number,
    first_number,
    is_http_url,
    nested,
    relative_reference,
    round_half_up,
    slugify_filename,
)
from domain.services.image_loading import load_image

logger = logging.getLogger(__name__)

PLACEHOLDER_DIRNAME = "placeholders"


def image_source(element: Element) -> str:
    return str(element.get("image_source") or element.get("imageSource") or "").strip()


class AssetResolver:
    """Makes sure every Image element points at a loadable picture.

    Missing or broken sources are replaced with generated placeholders, and
    sizes that were left out are copied from the resolved image.
    """

    def __init__(self, store: AssetStore, generator: PlaceholderGenerator | None = None) -> None:
        self.store = store
        self.generator = generator or PlaceholderGenerator(store)

    def resolve(
        self,
        elements: Sequence[Any],
        layout_dir: Path,
        assets_dir: Path,
        placeholder_style: PlaceholderStyle = "gradient",
        placeholder_label: str | None = None,
    ) -> AssetResolution:
        placeholder_dir = assets_dir / PLACEHOLDER_DIRNAME
        resolved = copy.deepcopy(list(elements or []))
        placeholders: list[PlaceholderRecord] = []
        diagnostics = DiagnosticLog(logger)

        for index, element in enumerate(resolved):
            if not isinstance(element, dict) or element_type(element) != "image":
                continue

            source = image_source(element)
            if self._needs_placeholder(source, layout_dir):
                placeholder_path = self._generate_placeholder(
                    element, index, placeholder_dir, placeholder_style, placeholder_label
                )
                source = relative_reference(placeholder_path, layout_dir)
                placeholders.append(
                    PlaceholderRecord(
                        element=str(element.get("name") or f"Image{index + 1}"),
                        placeholder_path=placeholder_path,
                    )
                )

            element["image_source"] = source
            element["imageSource"] = source
            self._backfill_size(element, source, layout_dir, diagnostics)

        return AssetResolution(
            elements=resolved, placeholders=placeholders, diagnostics=diagnostics.entries
        )

    def _needs_placeholder(self, source: str, layout_dir: Path) -> bool:
        if not source:
            return True
        if is_http_url(source):
            return False
        return not self.store.exists((layout_dir / source).resolve())

    def _generate_placeholder(
        self,
        element: Element,
        index: int,
        placeholder_dir: Path,
        style: PlaceholderStyle,
        label: str | None,
    ) -> Path:
        declared_width = finite_number(nested(element, "size", "width"), DEFAULT_PLACEHOLDER_SIZE)
        declared_height = finite_number(nested(element, "size", "height"), DEFAULT_PLACEHOLDER_SIZE)
        width = max(1, round_half_up(declared_width))
        height = max(1, round_half_up(declared_height))
        filename = slugify_filename(element.get("name"), f"image-{index + 1}")
        spec = PlaceholderSpec(
            width=width,
            height=height,
            style=style,
            label=label or str(element.get("name") or "Image"),
            border_radius=first_number(element.get("border_radius"), element.get("corner_radius")),
        )
        return self.generator.generate(spec, placeholder_dir / f"{filename}.png")

    def _backfill_size(
        self,
        element: Element,
        source: str,
        layout_dir: Path,
        diagnostics: DiagnosticLog,
    ) -> None:
        size = element.get("size") if isinstance(element.get("size"), dict) else {}
        if size.get("width") and size.get("height"):
            return
        try:
            image = load_image(self.store, source, layout_dir)
        except OSError as exc:
            label = element.get("name") or element.get("type")
            diagnostics.warn(
                IMAGE_PROBE_FAILED,
                f'Unable to load image for element "{label}": {exc}',
                str(label) if label else None,
            )
            return
        size = dict(size)
        if not size.get("width"):
            size["width"] = image.width
        if not size.get("height"):
            size["height"] = image.height
        element["size"] = size
