from __future__ import annotations

from pathlib import Path

import pytest

from domain.services.geometry import (
    first_number,
    is_http_url,
    parse_color,
    relative_reference,
    round_half_up,
    slugify_filename,
    to_layer_opacity,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.5, 3), (2.4999, 2), (-2.5, -2), (0, 0), (7.5, 8)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#fff", (255, 255, 255, 255)),
        ("#1A1A1A", (26, 26, 26, 255)),
        ("#11223344", (17, 34, 51, 68)),
        ("red", (255, 0, 0, 255)),
        ("rgb(1, 2, 3)", (1, 2, 3, 255)),
        ("rgba(10, 20, 30, 0.5)", (10, 20, 30, 128)),
        ("rgba(0,0,0,.25)", (0, 0, 0, 64)),
    ],
)
def test_parse_color(value: str, expected: tuple[int, int, int, int]) -> None:
    assert parse_color(value) == expected


def test_parse_color_rejects_unknown_values() -> None:
    with pytest.raises(ValueError):
        parse_color("not-a-color")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, 255), (1, 255), (0.5, 128), (0, 0), (2, 255), (-1, 0), ("0.5", 255)],
)
def test_to_layer_opacity(value: object, expected: int) -> None:
    assert to_layer_opacity(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("https://cdn.example.com/a.png", True),
        ("HTTP://cdn.example.com/a.png", True),
        ("http://", False),
        ("ftp://cdn.example.com/a.png", False),
        ("images/a.png", False),
        ("", False),
        (None, False),
    ],
)
def test_is_http_url(value: object, expected: bool) -> None:
    assert is_http_url(value) is expected


@pytest.mark.parametrize(
    ("value", "fallback", "expected"),
    [
        ("Hero Image!", None, "hero-image"),
        ("ok_name.v2", None, "ok_name.v2"),
        (None, "image-3", "image-3"),
        ("***", "image", "image"),
        ("", None, "asset"),
    ],
)
def test_slugify_filename(value: object, fallback: str | None, expected: str) -> None:
    assert slugify_filename(value, fallback) == expected


def test_first_number_skips_non_numbers() -> None:
    assert first_number("3", None, True, 4.5) == 4.5
    assert first_number(None, default=7) == 7


def test_relative_reference_uses_forward_slashes(tmp_path: Path) -> None:
    target = tmp_path / "dist" / "assets" / "hero.png"

    assert relative_reference(target, tmp_path) == "dist/assets/hero.png"
