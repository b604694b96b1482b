from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
import uvicorn
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.filesystem.layout_repository import FileSystemLayoutRepository
from app.config import AppSettings, load_settings
from app.wiring import (
    build_image_synthesizer,
    build_pipeline,
    with_image_layout_defaults,
    with_pipeline_defaults,
)
from domain.models import ImageLayoutRequest, PipelineRequest, element_type
from domain.services.compute_bounds import compute_bounds

app = typer.Typer(no_args_is_help=True)
console = Console()


class PlaceholderChoice(str, Enum):
    gradient = "gradient"
    solid = "solid"
    checker = "checker"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _settings_or_exit(config_path: Path | None) -> AppSettings:
    try:
        return load_settings(config_path)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _given(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _print_diagnostics(diagnostics: list[Any]) -> None:
    for diagnostic in diagnostics:
        console.print(f"[yellow]{diagnostic.code}:[/] {diagnostic.message}")


@app.command("compose")
def compose(
    json_path: Path = typer.Argument(..., help="UMG layout JSON (array of elements)."),
    output_dir: Optional[Path] = typer.Option(
        None, "--out", help="Output directory. Defaults to <json dir>/dist."
    ),
    assets_dir: Optional[Path] = typer.Option(
        None, "--assets", help="Directory for generated placeholders. Defaults to <out>/assets."
    ),
    placeholder_style: Optional[PlaceholderChoice] = typer.Option(
        None, "--placeholder-style", help="Fill used for missing images."
    ),
    placeholder_label: Optional[str] = typer.Option(
        None, "--placeholder-label", help="Label drawn on every placeholder."
    ),
    overwrite_json: Optional[bool] = typer.Option(
        None,
        "--overwrite-json/--no-overwrite-json",
        help="Write the updated layout over the input file.",
    ),
    psd_name: Optional[str] = typer.Option(None, "--psd-name", help="PSD file name."),
    margin: Optional[int] = typer.Option(None, "--margin", min=0, help="Canvas margin in px."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress."),
) -> None:
    _configure_logging(verbose)
    settings = _settings_or_exit(config_path)
    try:
        request = PipelineRequest(
            json_path=json_path,
            **_given(
                output_dir=output_dir,
                assets_dir=assets_dir,
                placeholder_style=placeholder_style.value if placeholder_style else None,
                placeholder_label=placeholder_label,
                overwrite_json=overwrite_json,
                psd_filename=psd_name,
                margin=margin,
            ),
        )
        result = build_pipeline(settings).run(with_pipeline_defaults(request, settings))
    except (OSError, ValueError) as exc:
        console.print(f"[red]Compose failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        console.print_json(data={"ok": True, **result.to_dict()})
        return

    console.print(f"[green]PSD created:[/] {result.psd_path}")
    console.print(f"[green]Updated JSON:[/] {result.updated_json_path}")
    console.print(
        f"Layers: {result.layer_count}  Canvas: {result.bounds.width}x{result.bounds.height}"
    )
    for record in result.placeholders:
        console.print(f"Placeholder for {record.element}: {record.placeholder_path}")
    _print_diagnostics(result.diagnostics)


@app.command("from-image")
def from_image(
    image_path: str = typer.Argument(..., help="Local image path or http(s) URL."),
    output_json: Optional[Path] = typer.Option(
        None, "--out-json", help="Layout JSON to write. Defaults to <image dir>/<name>.json."
    ),
    assets_dir: Optional[Path] = typer.Option(
        None, "--image-assets", help="Copy the image into this directory first."
    ),
    include_border: Optional[bool] = typer.Option(
        None, "--include-border/--no-include-border", help="Wrap the image in a Border."
    ),
    margin: Optional[float] = typer.Option(None, "--margin", min=0, help="Border padding in px."),
    border_radius: Optional[float] = typer.Option(None, "--border-radius", min=0),
    border_color: Optional[str] = typer.Option(None, "--border-color"),
    background_color: Optional[str] = typer.Option(None, "--background-color"),
    position_x: Optional[float] = typer.Option(None, "--x"),
    position_y: Optional[float] = typer.Option(None, "--y"),
    container_name: Optional[str] = typer.Option(None, "--name", help="Border element name."),
    image_name: Optional[str] = typer.Option(None, "--image-name", help="Image element name."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress."),
) -> None:
    _configure_logging(verbose)
    settings = _settings_or_exit(config_path)
    try:
        request = ImageLayoutRequest(
            image_path=image_path,
            **_given(
                output_json=output_json,
                assets_dir=assets_dir,
                include_border=include_border,
                margin=margin,
                border_radius=border_radius,
                border_color=border_color,
                background_color=background_color,
                position_x=position_x,
                position_y=position_y,
                container_name=container_name,
                image_name=image_name,
            ),
        )
        result = build_image_synthesizer(settings).generate(
            with_image_layout_defaults(request, settings)
        )
    except (OSError, ValueError) as exc:
        console.print(f"[red]Layout generation failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        console.print_json(data={"ok": True, **result.to_dict()})
        return

    console.print(f"[green]Wrote[/] {result.json_path}")
    console.print(f"Image: {result.width}x{result.height}  Elements: {result.elements}")
    if result.copied_asset_path is not None:
        console.print(f"Copied asset: {result.copied_asset_path}")


@app.command("validate")
def validate(
    json_path: Path = typer.Argument(..., help="UMG layout JSON to validate."),
    margin: int = typer.Option(0, "--margin", min=0, help="Margin used for the canvas size."),
) -> None:
    if not json_path.exists():
        console.print(f"[red]File not found:[/] {json_path}")
        raise typer.Exit(code=1)

    try:
        elements = FileSystemLayoutRepository().load(json_path)
    except ValueError as exc:
        console.print(f"[red]Validation failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    bounds = compute_bounds(elements, margin)
    types = Counter(
        element_type(element) or "?" for element in elements if isinstance(element, dict)
    )
    summary = ", ".join(f"{name}={count}" for name, count in sorted(types.items()))
    console.print(f"[green]Valid layout:[/] {json_path}")
    console.print(f"Elements: {len(elements)} ({summary or 'none'})")
    console.print(f"Canvas: {bounds.width}x{bounds.height}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    from app.web_main import create_app

    _configure_logging(verbose=True)
    settings = _settings_or_exit(config_path)
    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    app()
