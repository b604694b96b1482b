from __future__ import annotations

from pathlib import Path
from typing import Protocol


class AssetFetchError(OSError):
    """Raised when an asset cannot be read from its location."""


class AssetStore(Protocol):
    def exists(self, path: Path) -> bool: ...

    def read_bytes(self, location: str) -> bytes: ...

    def write_bytes(self, path: Path, data: bytes) -> Path: ...

    def copy_file(self, source: Path, target: Path) -> Path: ...
