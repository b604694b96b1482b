from __future__ import annotations

from pathlib import Path

from adapters.assets.local_store import LocalAssetStore
from domain.services.compose_layers import LayerCompositor, order_by_z, stacking_key
from domain.services.diagnostics import IMAGE_LOAD_FAILED
from domain.services.fonts import FontRegistry
from tests.helpers.layout_fixtures import frame_and_hero_layout, write_png


def test_order_by_z_is_stable_and_skips_non_objects() -> None:
    elements = [
        {"name": "a", "z_order": 2},
        {"name": "b"},
        "junk",
        {"name": "c", "zOrder": 1},
        {"name": "d", "z_order": 1},
    ]

    assert [element["name"] for element in order_by_z(elements)] == ["b", "c", "d", "a"]


def test_stacking_key_prefers_snake_case_numbers() -> None:
    assert stacking_key({"z_order": 3, "zOrder": 9}) == 3
    assert stacking_key({"z_order": "3", "zOrder": 9}) == 9
    assert stacking_key({"z_order": "3"}) == 0


def test_compose_orders_children_top_most_first(tmp_path: Path, store: LocalAssetStore) -> None:
    write_png(tmp_path / "hero.png", size=(25, 20))

    composition = LayerCompositor(store).compose(
        frame_and_hero_layout("hero.png"), base_dir=tmp_path, margin=10
    )

    document = composition.document
    assert (document.width, document.height) == (220, 120)
    assert [layer.name for layer in document.children] == ["Hero", "Frame"]
    hero, frame = document.children
    assert (hero.left, hero.top, hero.right, hero.bottom) == (30, 20, 80, 60)
    assert hero.image.size == (50, 40)
    assert (frame.left, frame.top) == (10, 10)
    assert composition.layer_count == 2
    assert composition.bounds.offset_x == 10
    assert composition.diagnostics == []


def test_compose_drops_empty_and_unpainted_elements(
    tmp_path: Path, store: LocalAssetStore
) -> None:
    elements = [
        {
            "type": "Border",
            "name": "Zero",
            "size": {"width": 0, "height": 10},
            "color": {"background": "#fff"},
        },
        {"type": "Border", "name": "Bare", "size": {"width": 10, "height": 10}},
        {"type": "TextBlock", "name": "Empty", "text": ""},
        {
            "type": "CanvasPanel",
            "name": "Root",
            "size": {"width": 30, "height": 30},
            "color": {"background": "#222"},
        },
    ]

    composition = LayerCompositor(store).compose(elements, base_dir=tmp_path, margin=0)

    assert [layer.name for layer in composition.document.children] == ["Root"]
    assert composition.layer_count == 1


def test_compose_reports_unloadable_images(tmp_path: Path, store: LocalAssetStore) -> None:
    composition = LayerCompositor(store).compose(
        frame_and_hero_layout("missing.png"), base_dir=tmp_path, margin=0
    )

    assert [layer.name for layer in composition.document.children] == ["Frame"]
    assert [entry.code for entry in composition.diagnostics] == [IMAGE_LOAD_FAILED]


def test_compose_without_elements_uses_default_canvas(
    tmp_path: Path, store: LocalAssetStore
) -> None:
    composition = LayerCompositor(store).compose([], base_dir=tmp_path)

    assert (composition.document.width, composition.document.height) == (1152, 896)
    assert composition.document.children == []


def test_swapping_z_order_flips_layer_order(tmp_path: Path, store: LocalAssetStore) -> None:
    def panels(first_z: int, second_z: int) -> list[dict[str, object]]:
        return [
            {
                "type": "Border",
                "name": "First",
                "size": {"width": 10, "height": 10},
                "color": {"background": "#f00"},
                "z_order": first_z,
            },
            {
                "type": "Border",
                "name": "Second",
                "size": {"width": 10, "height": 10},
                "color": {"background": "#00f"},
                "z_order": second_z,
            },
        ]

    compositor = LayerCompositor(store)
    before = compositor.compose(panels(1, 2), base_dir=tmp_path)
    after = compositor.compose(panels(2, 1), base_dir=tmp_path)
    tied = compositor.compose(panels(1, 1), base_dir=tmp_path)

    assert [layer.name for layer in before.document.children] == ["Second", "First"]
    assert [layer.name for layer in after.document.children] == ["First", "Second"]
    assert [layer.name for layer in tied.document.children] == ["Second", "First"]


def _system_free_fonts() -> FontRegistry:
    return FontRegistry(default_family="No Such Family", fallback_paths=(), bold_fallback_paths=())


def test_compose_survives_unusable_font_settings(tmp_path: Path, store: LocalAssetStore) -> None:
    elements = [
        {
            "type": "TextBlock",
            "name": "Huge",
            "text": "Hi",
            "size": {"width": 100, "height": 40},
            "font": {"size": 100000, "weight": 700.0},
        },
        {
            "type": "TextBlock",
            "name": "Broken Family",
            "text": "Hi",
            "size": {"width": 100, "height": 40},
            "font": {"family": "Ari\u0000al", "size": 20},
        },
    ]

    composition = LayerCompositor(store, font_factory=_system_free_fonts).compose(
        elements, base_dir=tmp_path
    )

    assert sorted(layer.name for layer in composition.document.children) == [
        "Broken Family",
        "Huge",
    ]
    assert composition.layer_count == 2
