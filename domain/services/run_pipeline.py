from __future__ import annotations

import logging
from pathlib import Path

from domain.models import (
    CompositionOutcome,
    CompositionRequest,
    PipelineRequest,
    PipelineResult,
)
from domain.ports.assets import AssetStore
from domain.ports.repositories import DocumentEncoder, LayoutRepository
from domain.services.compose_layers import LayerCompositor
from domain.services.resolve_assets import AssetResolver

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIRNAME = "dist"
DEFAULT_ASSETS_DIRNAME = "assets"


class LayoutComposer:
    """Asset resolution followed by composition, entirely in memory."""

    def __init__(self, resolver: AssetResolver, compositor: LayerCompositor) -> None:
        self.resolver = resolver
        self.compositor = compositor

    def compose(self, request: CompositionRequest) -> CompositionOutcome:
        resolution = self.resolver.resolve(
            request.elements,
            layout_dir=request.layout_dir,
            assets_dir=request.assets_dir,
            placeholder_style=request.placeholder_style,
            placeholder_label=request.placeholder_label,
        )
        composition = self.compositor.compose(
            resolution.elements, base_dir=request.layout_dir, margin=request.margin
        )
        return CompositionOutcome(
            document=composition.document,
            bounds=composition.bounds,
            layer_count=composition.layer_count,
            placeholders=resolution.placeholders,
            diagnostics=[*resolution.diagnostics, *composition.diagnostics],
            elements=resolution.elements,
        )


class LayoutToPsdPipeline:
    def __init__(
        self,
        composer: LayoutComposer,
        layouts: LayoutRepository,
        encoder: DocumentEncoder,
        store: AssetStore,
    ) -> None:
        self.composer = composer
        self.layouts = layouts
        self.encoder = encoder
        self.store = store

    def run(self, request: PipelineRequest) -> PipelineResult:
        json_path = request.json_path.resolve()
        if not self.store.exists(json_path):
            msg = f"Input JSON not found: {json_path}"
            raise FileNotFoundError(msg)

        layout_dir = json_path.parent
        elements = self.layouts.load(json_path)

        output_dir = (request.output_dir or layout_dir / DEFAULT_OUTPUT_DIRNAME).resolve()
        assets_dir = (request.assets_dir or output_dir / DEFAULT_ASSETS_DIRNAME).resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        assets_dir.mkdir(parents=True, exist_ok=True)

        outcome = self.composer.compose(
            CompositionRequest(
                elements=elements,
                margin=request.margin,
                assets_dir=assets_dir,
                layout_dir=layout_dir,
                placeholder_style=request.placeholder_style,
                placeholder_label=request.placeholder_label,
            )
        )

        updated_json_path = json_path if request.overwrite_json else output_dir / json_path.name
        self.layouts.save(outcome.elements, updated_json_path)

        psd_path = output_dir / (request.psd_filename or f"{json_path.stem}.psd")
        self.encoder.encode(outcome.document, psd_path)
        logger.info("Wrote %s with %d layers", psd_path, outcome.layer_count)

        return PipelineResult(
            updated_json_path=updated_json_path,
            psd_path=psd_path,
            layer_count=outcome.layer_count,
            bounds=outcome.bounds,
            placeholders=outcome.placeholders,
            diagnostics=outcome.diagnostics,
        )
