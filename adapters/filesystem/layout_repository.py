from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import Element
from domain.ports.repositories import LayoutRepository


class FileSystemLayoutRepository(LayoutRepository):
    def load(self, path: Path) -> list[Element]:
        payload = load_json(path)
        if not isinstance(payload, list):
            msg = "Expected the UMG JSON to be an array of elements"
            raise ValueError(msg)
        return payload

    def save(self, elements: Sequence[Element], path: Path) -> None:
        write_json_atomic(path, list(elements))
