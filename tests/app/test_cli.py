from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from typer.testing import CliRunner

from app.cli import app
from tests.helpers.layout_fixtures import LayoutWriter, frame_and_hero_layout, write_png

runner = CliRunner()


def _json_output(output: str) -> dict[str, Any]:
    return json.loads(output[output.index("{") :])


def test_compose_writes_psd(tmp_path: Path, write_layout: LayoutWriter) -> None:
    json_path = write_layout(frame_and_hero_layout())

    result = runner.invoke(
        app,
        [
            "compose",
            str(json_path),
            "--out",
            str(tmp_path / "out"),
            "--placeholder-style",
            "solid",
            "--margin",
            "10",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = _json_output(result.output)
    assert payload["ok"] is True
    assert payload["layerCount"] == 2
    assert payload["bounds"]["width"] == 220
    assert Path(payload["psdPath"]).name == "layout.psd"
    assert Path(payload["psdPath"]).is_file()
    assert [item["element"] for item in payload["placeholders"]] == ["Hero"]


def test_compose_reports_missing_json(tmp_path: Path) -> None:
    result = runner.invoke(app, ["compose", str(tmp_path / "absent.json")])

    assert result.exit_code == 1
    assert "Compose failed" in result.output


def test_compose_uses_margin_from_config(tmp_path: Path, write_layout: LayoutWriter) -> None:
    json_path = write_layout(frame_and_hero_layout())
    config_path = tmp_path / "umg2psd.yaml"
    config_path.write_text("pipeline:\n  margin: 0\n", encoding="utf-8")

    result = runner.invoke(
        app, ["compose", str(json_path), "--config", str(config_path), "--json"]
    )

    assert result.exit_code == 0, result.output
    assert _json_output(result.output)["bounds"]["width"] == 200


def test_from_image_writes_layout(tmp_path: Path) -> None:
    image_path = write_png(tmp_path / "logo.png", size=(12, 10))
    output_json = tmp_path / "layouts" / "logo.json"

    result = runner.invoke(
        app,
        [
            "from-image",
            str(image_path),
            "--out-json",
            str(output_json),
            "--no-include-border",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = _json_output(result.output)
    assert payload["elements"] == 1
    assert payload["includeBorder"] is False
    assert (payload["width"], payload["height"]) == (12, 10)
    assert output_json.is_file()


def test_from_image_reports_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["from-image", str(tmp_path / "absent.png")])

    assert result.exit_code == 1
    assert "Layout generation failed" in result.output


def test_validate_accepts_layout(write_layout: LayoutWriter) -> None:
    json_path = write_layout(frame_and_hero_layout())

    result = runner.invoke(app, ["validate", str(json_path)])

    assert result.exit_code == 0, result.output
    assert "Valid layout" in result.output
    assert "border=1, image=1" in result.output
    assert "200x100" in result.output


def test_validate_rejects_non_array(tmp_path: Path) -> None:
    json_path = tmp_path / "object.json"
    json_path.write_text('{"type": "Border"}', encoding="utf-8")

    result = runner.invoke(app, ["validate", str(json_path)])

    assert result.exit_code == 1
    assert "Validation failed" in result.output
