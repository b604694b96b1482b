from __future__ import annotations

import argparse
import json
import tempfile
import time
import urllib.error
import urllib.request
from pathlib import Path

SAMPLE_LAYOUT = [
    {
        "type": "Border",
        "name": "Frame",
        "position": {"x": 0, "y": 0},
        "size": {"width": 320, "height": 200},
        "color": {"background": "#1A1A1A", "border": "#333333"},
        "border_radius": 12,
        "z_order": 0,
    },
    {
        "type": "TextBlock",
        "name": "Title",
        "text": "Smoke test",
        "position": {"x": 16, "y": 16},
        "size": {"width": 288, "height": 40},
        "font": {"size": 24, "weight": "Bold"},
        "z_order": 1,
    },
    {
        "type": "Image",
        "name": "Hero",
        "position": {"x": 16, "y": 64},
        "size": {"width": 288, "height": 120},
        "z_order": 2,
    },
]


def fetch(url: str, payload: dict | None = None) -> tuple[int, bytes]:
    data = None if payload is None else json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    with urllib.request.urlopen(req, timeout=30) as resp:
        return resp.status, resp.read()


def wait_for(url: str, timeout: int) -> bytes:
    deadline = time.time() + timeout
    last_error: Exception | None = None
    while time.time() < deadline:
        try:
            status, body = fetch(url)
            if status == 200:
                return body
        except (urllib.error.URLError, OSError) as exc:
            last_error = exc
        time.sleep(1)
    raise RuntimeError(f"Timed out waiting for {url}: {last_error}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke test against a running umg2psd server.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--timeout", type=int, default=60)
    args = parser.parse_args()

    base = args.base_url.rstrip("/")
    wait_for(f"{base}/health", args.timeout)

    # The server reads the layout from disk, so it has to share this filesystem.
    workdir = Path(tempfile.mkdtemp(prefix="umg2psd-smoke-"))
    layout_path = workdir / "smoke.json"
    layout_path.write_text(json.dumps(SAMPLE_LAYOUT), encoding="utf-8")

    status, body = fetch(f"{base}/api/pipeline", {"json_path": str(layout_path)})
    if status != 200:
        raise RuntimeError(f"Pipeline returned HTTP {status}")
    result = json.loads(body.decode("utf-8"))
    if result.get("layerCount") != len(SAMPLE_LAYOUT):
        raise RuntimeError(f"Unexpected layer count: {result.get('layerCount')}")
    if not Path(result["psdPath"]).is_file():
        raise RuntimeError("PSD file was not written")
    if len(result.get("placeholders", [])) != 1:
        raise RuntimeError("Expected a placeholder for the Hero image")

    print(f"Smoke test passed: {result['psdPath']}")


if __name__ == "__main__":
    main()
