from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from domain.models import DEFAULT_MARGIN, Composition, Element, Layer, LayeredDocument
from domain.ports.assets import AssetStore
from domain.services.compute_bounds import compute_bounds
from domain.services.diagnostics import DiagnosticLog
from domain.services.fonts import FontRegistry
from domain.services.geometry import first_number
from domain.services.layer_frame import build_layer_frame
from domain.services.render_elements import RenderContext, render_element

logger = logging.getLogger(__name__)


def stacking_key(element: Element) -> float:
    return first_number(element.get("z_order"), element.get("zOrder"))


def order_by_z(elements: Sequence[Any]) -> list[Element]:
    """Ascending z order; equal keys keep their input order."""
    indexed = [
        (index, element) for index, element in enumerate(elements) if isinstance(element, dict)
    ]
    indexed.sort(key=lambda entry: (stacking_key(entry[1]), entry[0]))
    return [element for _, element in indexed]


class LayerCompositor:
    def __init__(
        self,
        store: AssetStore,
        font_factory: Callable[[], FontRegistry] = FontRegistry,
    ) -> None:
        self.store = store
        self.font_factory = font_factory

    def compose(
        self,
        elements: Sequence[Any],
        base_dir: Path,
        margin: int = DEFAULT_MARGIN,
    ) -> Composition:
        bounds = compute_bounds(elements, margin)
        diagnostics = DiagnosticLog(logger)
        context = RenderContext(
            store=self.store,
            base_dir=base_dir,
            fonts=self.font_factory(),
            diagnostics=diagnostics,
        )

        layers: list[Layer] = []
        for element in order_by_z(elements):
            frame = build_layer_frame(element, bounds.offset_x, bounds.offset_y)
            if frame is None:
                continue
            layer = render_element(element, frame, context)
            if layer is not None:
                layers.append(layer)

        logger.info("Composed %d layers on a %dx%d canvas", len(layers), bounds.width, bounds.height)
        document = LayeredDocument(
            width=bounds.width,
            height=bounds.height,
            children=list(reversed(layers)),
        )
        return Composition(
            document=document,
            bounds=bounds,
            layer_count=len(layers),
            diagnostics=diagnostics.entries,
        )
