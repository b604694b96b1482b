from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.responses import ORJSONResponse

from app.config import AppSettings, load_settings
from app.wiring import (
    build_image_synthesizer,
    build_pipeline,
    with_image_layout_defaults,
    with_pipeline_defaults,
)
from domain.models import ImageLayoutRequest, PipelineRequest
from domain.ports.assets import AssetFetchError

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


def _run_or_http_error(action: Callable[[], ResultT]) -> ResultT:
    try:
        return action()
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AssetFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def create_app(
    settings: AppSettings,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.api.title)
    pipeline = build_pipeline(settings, transport)
    synthesizer = build_image_synthesizer(settings, transport)

    @app.get("/health")
    def health() -> ORJSONResponse:
        return ORJSONResponse({"status": "ok"})

    @app.post("/api/pipeline")
    def api_pipeline(payload: PipelineRequest) -> ORJSONResponse:
        request = with_pipeline_defaults(payload, settings)
        result = _run_or_http_error(lambda: pipeline.run(request))
        logger.info("Composed %s into %s", request.json_path, result.psd_path)
        return ORJSONResponse({"ok": True, **result.to_dict()})

    @app.post("/api/image-to-json")
    def api_image_to_json(payload: ImageLayoutRequest) -> ORJSONResponse:
        request = with_image_layout_defaults(payload, settings)
        result = _run_or_http_error(lambda: synthesizer.generate(request))
        return ORJSONResponse({"ok": True, **result.to_dict()})

    return app


app = create_app(load_settings())
