from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from domain.models import Element, ImageLayoutRequest, ImageLayoutResult
from domain.ports.assets import AssetStore
from domain.ports.repositories import LayoutRepository
from domain.services.geometry import (
    is_http_url,
    relative_reference,
    round_half_up,
    slugify_filename,
)
from domain.services.image_loading import load_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedAsset:
    source_for_load: str
    reference: str
    copied_asset_path: Path | None = None


def source_name_parts(image_path: str) -> tuple[str, str]:
    """Return ``(stem, suffix)`` of a local path or of a URL's path component."""
    if is_http_url(image_path):
        name = PurePosixPath(unquote(urlparse(image_path).path)).name
        pure = PurePosixPath(name) if name else PurePosixPath("")
        return pure.stem, pure.suffix
    path = Path(image_path).resolve()
    return path.stem, path.suffix


class ImageToLayoutSynthesizer:
    """Wraps a single picture into a minimal Border + Image layout."""

    def __init__(
        self,
        store: AssetStore,
        layouts: LayoutRepository,
        working_dir: Callable[[], Path] = Path.cwd,
    ) -> None:
        self.store = store
        self.layouts = layouts
        self.working_dir = working_dir

    def generate(self, request: ImageLayoutRequest) -> ImageLayoutResult:
        image_path = request.image_path.strip()
        if not image_path:
            msg = "image_path is required to generate JSON"
            raise ValueError(msg)

        json_path = self.resolve_output_json_path(image_path, request.output_json)
        json_dir = json_path.parent
        json_dir.mkdir(parents=True, exist_ok=True)

        asset = self.prepare_asset(image_path, request.assets_dir, json_dir)
        image = load_image(self.store, asset.source_for_load, json_dir)
        width = max(1, image.width)
        height = max(1, image.height)

        stem, _ = source_name_parts(image_path)
        image_name = request.image_name or slugify_filename(stem or "image", "image")
        container_name = request.container_name or f"{image_name}-container"
        margin = max(0, round_half_up(request.margin))
        x = round_half_up(request.position_x)
        y = round_half_up(request.position_y)
        inset = margin if request.include_border else 0

        elements: list[Element] = []
        if request.include_border:
            elements.append(
                {
                    "type": "Border",
                    "name": container_name,
                    "position": {"x": x, "y": y},
                    "size": {"width": width + margin * 2, "height": height + margin * 2},
                    "color": {
                        "background": request.background_color,
                        "border": request.border_color,
                    },
                    "border_radius": request.border_radius,
                    "z_order": 0,
                    "children": [image_name],
                }
            )
        elements.append(
            {
                "type": "Image",
                "name": image_name,
                "position": {"x": x + inset, "y": y + inset},
                "size": {"width": width, "height": height},
                "image_source": asset.reference,
                "imageSource": asset.reference,
                "z_order": 1 if request.include_border else 0,
            }
        )

        self.layouts.save(elements, json_path)
        logger.info("Generated layout %s from %s", json_path, image_path)
        return ImageLayoutResult(
            json_path=json_path,
            width=width,
            height=height,
            elements=len(elements),
            include_border=request.include_border,
            image_reference=asset.reference,
            copied_asset_path=asset.copied_asset_path,
        )

    def resolve_output_json_path(self, image_path: str, output_json: Path | None) -> Path:
        if output_json is not None:
            return output_json.resolve()
        stem, _ = source_name_parts(image_path)
        if is_http_url(image_path):
            directory = self.working_dir()
        else:
            directory = Path(image_path).resolve().parent
        return directory / f"{slugify_filename(stem, 'layout')}.json"

    def prepare_asset(
        self, image_path: str, assets_dir: Path | None, json_dir: Path
    ) -> PreparedAsset:
        remote = is_http_url(image_path)
        source_for_load = image_path
        local_path: Path | None = None
        if not remote:
            local_path = Path(image_path).resolve()
            if not self.store.exists(local_path):
                msg = f"Image file not found: {local_path}"
                raise FileNotFoundError(msg)
            source_for_load = str(local_path)

        if assets_dir is not None:
            stem, suffix = source_name_parts(image_path)
            target = assets_dir.resolve() / f"{slugify_filename(stem, 'image')}{suffix or '.png'}"
            if local_path is None:
                self.store.write_bytes(target, self.store.read_bytes(image_path))
            else:
                self.store.copy_file(local_path, target)
            return PreparedAsset(
                source_for_load=str(target),
                reference=relative_reference(target, json_dir),
                copied_asset_path=target,
            )

        if local_path is not None:
            return PreparedAsset(
                source_for_load=source_for_load,
                reference=relative_reference(local_path, json_dir),
            )
        return PreparedAsset(source_for_load=source_for_load, reference=image_path)
