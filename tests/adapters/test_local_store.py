from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from adapters.assets.local_store import LocalAssetStore
from domain.ports.assets import AssetFetchError
from tests.helpers.layout_fixtures import image_transport


def test_reads_local_files(tmp_path: Path) -> None:
    target = tmp_path / "a.bin"
    target.write_bytes(b"abc")
    store = LocalAssetStore()

    assert store.exists(target)
    assert not store.exists(tmp_path)
    assert store.read_bytes(str(target)) == b"abc"


def test_downloads_urls_with_user_agent() -> None:
    seen: list[httpx.Request] = []
    url = "https://cdn.example.com/a.png"
    store = LocalAssetStore(
        user_agent="umg-test", transport=image_transport({url: b"png-bytes"}, seen)
    )

    assert store.read_bytes(url) == b"png-bytes"
    assert seen[0].headers["User-Agent"] == "umg-test"


def test_http_errors_are_wrapped() -> None:
    store = LocalAssetStore(transport=image_transport({}))

    with pytest.raises(AssetFetchError, match="404 Not Found"):
        store.read_bytes("https://cdn.example.com/missing.png")


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = LocalAssetStore(transport=httpx.MockTransport(handler))

    with pytest.raises(AssetFetchError, match="connection refused"):
        store.read_bytes("http://cdn.example.com/a.png")


def test_redirects_are_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.png":
            return httpx.Response(302, headers={"Location": "https://cdn.example.com/new.png"})
        return httpx.Response(200, content=b"new")

    store = LocalAssetStore(transport=httpx.MockTransport(handler))

    assert store.read_bytes("https://cdn.example.com/old.png") == b"new"


def test_write_and_copy_create_parent_directories(tmp_path: Path) -> None:
    store = LocalAssetStore()

    written = store.write_bytes(tmp_path / "a" / "b" / "c.bin", b"data")
    copied = store.copy_file(written, tmp_path / "copies" / "c.bin")

    assert copied.read_bytes() == b"data"
    assert store.copy_file(copied, copied) == copied
