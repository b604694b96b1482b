from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import orjson
import pytest

from adapters.assets.local_store import LocalAssetStore
from app.config import AppSettings
from tests.helpers.layout_fixtures import LayoutWriter


def _clear_umg_env() -> None:
    for key in list(os.environ):
        if key.startswith("UMG_"):
            os.environ.pop(key, None)


_clear_umg_env()


@pytest.fixture(autouse=True)
def clear_umg_env() -> Generator[None, None, None]:
    _clear_umg_env()
    yield
    _clear_umg_env()


@pytest.fixture
def store() -> LocalAssetStore:
    return LocalAssetStore()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def write_layout(tmp_path: Path) -> LayoutWriter:
    def _write(elements: list[Any], name: str = "layout.json") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(orjson.dumps(elements))
        return path

    return _write
