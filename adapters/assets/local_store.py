from __future__ import annotations

import shutil
from pathlib import Path

import httpx

from domain.ports.assets import AssetFetchError, AssetStore
from domain.services.geometry import is_http_url

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "umg-psd-convertor"


class LocalAssetStore(AssetStore):
    """Local filesystem for paths, a short-lived httpx client for URLs."""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        follow_redirects: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.follow_redirects = follow_redirects
        self.user_agent = user_agent
        self.transport = transport

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_bytes(self, location: str) -> bytes:
        if is_http_url(location):
            return self._download(location)
        return Path(location).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def copy_file(self, source: Path, target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        if source.resolve() == target.resolve():
            return target
        shutil.copyfile(source, target)
        return target

    def _download(self, url: str) -> bytes:
        try:
            with httpx.Client(
                timeout=self.timeout_seconds,
                follow_redirects=self.follow_redirects,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            reason = exc.response.reason_phrase
            msg = f"Failed to download {url}: {status} {reason}"
            raise AssetFetchError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Failed to download {url}: {exc}"
            raise AssetFetchError(msg) from exc
