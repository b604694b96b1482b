from __future__ import annotations

from collections.abc import Callable
from functools import partial

import httpx

from adapters.assets.local_store import LocalAssetStore
from adapters.filesystem.layout_repository import FileSystemLayoutRepository
from adapters.psd.encoder import PsdDocumentEncoder
from app.config import AppSettings
from domain.models import ImageLayoutRequest, PipelineRequest
from domain.services.build_layout_from_image import ImageToLayoutSynthesizer
from domain.services.compose_layers import LayerCompositor
from domain.services.fonts import FontRegistry
from domain.services.generate_placeholder import PlaceholderGenerator
from domain.services.resolve_assets import AssetResolver
from domain.services.run_pipeline import LayoutComposer, LayoutToPsdPipeline


def build_asset_store(
    settings: AppSettings, transport: httpx.BaseTransport | None = None
) -> LocalAssetStore:
    return LocalAssetStore(
        timeout_seconds=settings.http.timeout_seconds,
        follow_redirects=settings.http.follow_redirects,
        user_agent=settings.http.user_agent,
        transport=transport,
    )


def build_font_factory(settings: AppSettings) -> Callable[[], FontRegistry]:
    return partial(
        FontRegistry,
        default_family=settings.fonts.default_family,
        fallback_paths=tuple(settings.fonts.fallback_paths),
        bold_fallback_paths=tuple(settings.fonts.bold_fallback_paths),
    )


def build_composer(settings: AppSettings, store: LocalAssetStore) -> LayoutComposer:
    font_factory = build_font_factory(settings)
    resolver = AssetResolver(store, PlaceholderGenerator(store, font_factory))
    return LayoutComposer(resolver, LayerCompositor(store, font_factory))


def build_pipeline(
    settings: AppSettings, transport: httpx.BaseTransport | None = None
) -> LayoutToPsdPipeline:
    store = build_asset_store(settings, transport)
    return LayoutToPsdPipeline(
        composer=build_composer(settings, store),
        layouts=FileSystemLayoutRepository(),
        encoder=PsdDocumentEncoder(),
        store=store,
    )


def build_image_synthesizer(
    settings: AppSettings, transport: httpx.BaseTransport | None = None
) -> ImageToLayoutSynthesizer:
    return ImageToLayoutSynthesizer(
        store=build_asset_store(settings, transport),
        layouts=FileSystemLayoutRepository(),
    )


def with_pipeline_defaults(request: PipelineRequest, settings: AppSettings) -> PipelineRequest:
    defaults = settings.pipeline.model_dump(exclude_none=True)
    missing = {key: value for key, value in defaults.items() if key not in request.model_fields_set}
    return request.model_copy(update=missing)


def with_image_layout_defaults(
    request: ImageLayoutRequest, settings: AppSettings
) -> ImageLayoutRequest:
    defaults = settings.image_layout.model_dump(exclude_none=True)
    missing = {key: value for key, value in defaults.items() if key not in request.model_fields_set}
    return request.model_copy(update=missing)
