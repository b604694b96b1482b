from __future__ import annotations

from pathlib import Path

from psd_tools import PSDImage
from psd_tools.api.layers import PixelLayer

from domain.models import LayeredDocument
from domain.ports.repositories import DocumentEncoder


class PsdDocumentEncoder(DocumentEncoder):
    def build(self, document: LayeredDocument) -> PSDImage:
        psd = PSDImage.new("RGB", (document.width, document.height))
        # psd-tools keeps layers bottom-up; the document lists the top-most first.
        for layer in reversed(document.children):
            pixel_layer = PixelLayer.frompil(
                layer.image,
                psd,
                layer.name,
                top=layer.top,
                left=layer.left,
            )
            pixel_layer.opacity = layer.opacity
            psd.append(pixel_layer)
        return psd

    def encode(self, document: LayeredDocument, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.build(document).save(str(path))
        return path
