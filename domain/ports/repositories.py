from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from domain.models import Element, LayeredDocument


class LayoutRepository(Protocol):
    def load(self, path: Path) -> list[Element]: ...

    def save(self, elements: Sequence[Element], path: Path) -> None: ...


class DocumentEncoder(Protocol):
    def encode(self, document: LayeredDocument, path: Path) -> Path: ...
