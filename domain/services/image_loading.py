from __future__ import annotations

import io
from pathlib import Path

from PIL import Image

from domain.ports.assets import AssetStore
from domain.services.geometry import asset_location


def load_image(store: AssetStore, source: str, base_dir: Path) -> Image.Image:
    """Load ``source`` (URL, or path relative to ``base_dir``) as RGBA.

    Raises ``OSError`` (including ``AssetFetchError``) when the bytes cannot be
    read or decoded, or when the picture exceeds Pillow's pixel limit.
    """
    data = store.read_bytes(asset_location(source, base_dir))
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return image.convert("RGBA")
    except Image.DecompressionBombError as exc:
        msg = f"Image is too large to load: {exc}"
        raise OSError(msg) from exc
