from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import (
    DEFAULT_BORDER_BACKGROUND,
    DEFAULT_BORDER_STROKE,
    DEFAULT_FONT_FAMILY,
    DEFAULT_IMAGE_LAYOUT_MARGIN,
    DEFAULT_MARGIN,
    MAX_MARGIN,
    PlaceholderStyle,
)
from domain.services.fonts import DEFAULT_BOLD_FALLBACK_FONTS, DEFAULT_FALLBACK_FONTS

DEFAULT_CONFIG_PATH = Path("config/umg2psd.yaml")


def _split_string_list_value(raw_value: str) -> list[str]:
    raw = raw_value.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1].strip()
    if not raw:
        return []
    return [
        token for token in (part.strip().strip("'").strip('"') for part in raw.split(",")) if token
    ]


class PipelineSettings(BaseModel):
    margin: int = Field(DEFAULT_MARGIN, ge=0, le=MAX_MARGIN)
    placeholder_style: PlaceholderStyle = "gradient"
    placeholder_label: str | None = None
    output_dir: Path | None = None
    assets_dir: Path | None = None
    overwrite_json: bool = False


class ImageLayoutSettings(BaseModel):
    margin: float = Field(DEFAULT_IMAGE_LAYOUT_MARGIN, ge=0, le=MAX_MARGIN)
    include_border: bool = True
    border_radius: float = Field(0, ge=0, le=1024)
    background_color: str = DEFAULT_BORDER_BACKGROUND
    border_color: str = DEFAULT_BORDER_STROKE


class HttpSettings(BaseModel):
    timeout_seconds: float = Field(30.0, gt=0)
    follow_redirects: bool = True
    user_agent: str = "umg-psd-convertor"


class FontSettings(BaseModel):
    default_family: str = DEFAULT_FONT_FAMILY
    fallback_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_FONTS)
    )
    bold_fallback_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_BOLD_FALLBACK_FONTS)
    )

    @field_validator("fallback_paths", "bold_fallback_paths", mode="before")
    @classmethod
    def normalize_lists(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, list):
            normalized: list[str] = []
            for item in value:
                normalized.extend(_split_string_list_value(str(item)))
            return normalized
        return _split_string_list_value(str(value))


class ApiSettings(BaseModel):
    title: str = "UMG JSON to PSD"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="UMG_", env_nested_delimiter="__")

    pipeline: PipelineSettings = PipelineSettings()
    image_layout: ImageLayoutSettings = ImageLayoutSettings()
    http: HttpSettings = HttpSettings()
    fonts: FontSettings = FontSettings()
    api: ApiSettings = ApiSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("UMG_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
