from __future__ import annotations

from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from adapters.assets.local_store import LocalAssetStore
from adapters.psd.encoder import PsdDocumentEncoder
from domain.models import Frame, Layer, LayeredDocument
from domain.services.compose_layers import LayerCompositor
from tests.helpers.layout_fixtures import frame_and_hero_layout, write_png


def test_encoder_writes_layers_bottom_up(tmp_path: Path) -> None:
    document = LayeredDocument(
        width=64,
        height=48,
        children=[
            Layer(
                name="Hero",
                image=Image.new("RGBA", (10, 8), (0, 0, 255, 255)),
                frame=Frame(width=10, height=8, left=5, top=6),
                opacity=128,
            ),
            Layer(
                name="Frame",
                image=Image.new("RGBA", (64, 48), (26, 26, 26, 255)),
                frame=Frame(width=64, height=48, left=0, top=0),
                opacity=255,
            ),
        ],
    )
    path = tmp_path / "out" / "doc.psd"

    written = PsdDocumentEncoder().encode(document, path)

    assert written == path
    psd = PSDImage.open(path)
    assert (psd.width, psd.height) == (64, 48)
    layers = list(psd)
    assert [layer.name for layer in layers] == ["Frame", "Hero"]
    hero = layers[1]
    assert (hero.left, hero.top, hero.width, hero.height) == (5, 6, 10, 8)
    assert hero.opacity == 128


def test_composed_layout_round_trips_through_psd(
    tmp_path: Path, store: LocalAssetStore
) -> None:
    write_png(tmp_path / "hero.png", size=(25, 20))
    composition = LayerCompositor(store).compose(
        frame_and_hero_layout("hero.png"), base_dir=tmp_path, margin=10
    )

    path = PsdDocumentEncoder().encode(composition.document, tmp_path / "layout.psd")

    psd = PSDImage.open(path)
    assert (psd.width, psd.height) == (220, 120)
    assert [layer.name for layer in psd] == ["Frame", "Hero"]
    hero = list(psd)[1]
    assert (hero.left, hero.top) == (30, 20)
