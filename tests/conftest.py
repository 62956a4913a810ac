from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

# Ensure project root is importable as a module path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from swbuild.services.generator import GeneratedWorker

BUILD_ID = "b1d-42"
HELPER_URL = "/static/workbox/workbox-v3.6.3/workbox-sw.js"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for key in list(os.environ):
        if key.upper().startswith("NEXT_") or key.upper() == "SW_JSON_LOGS":
            monkeypatch.delenv(key, raising=False)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture()
def next_build(tmp_path, monkeypatch) -> Path:
    """A minimal `.next` output tree; the test runs from its project root."""
    monkeypatch.chdir(tmp_path)
    dist = tmp_path / ".next"
    _write(dist / "BUILD_ID", BUILD_ID)
    _write(dist / "app.js", "console.log('app')")
    _write(dist / "bundles" / "pages" / "index.js", "index")
    _write(dist / "bundles" / "pages" / "about.js", "about")
    _write(dist / "bundles" / "pages" / "blog" / "post.js", "post")
    _write(dist / "bundles" / "pages" / "notes.txt", "not js")
    _write(dist / "static" / "commons" / "main-abc.js", "commons")
    _write(dist / "static" / "commons" / "manifest.json", "{}")
    _write(dist / "chunks" / "chunk-1.js", "chunk")
    return dist


@pytest.fixture()
def workbox_modules(tmp_path) -> Path:
    """Fake installed workbox packages under tmp_path/node_modules."""
    nm = tmp_path / "node_modules"
    _write(nm / "workbox-sw" / "package.json", json.dumps({"version": "3.6.3", "main": "build/workbox-sw.js"}))
    _write(nm / "workbox-sw" / "build" / "workbox-sw.js", "// sw")
    _write(nm / "workbox-sw" / "build" / "workbox-sw.js.map", "{}")
    _write(nm / "workbox-core" / "build" / "workbox-core.prod.js", "// core")
    _write(nm / "workbox-core" / "README.md", "readme")
    return nm


class RecordingGenerator:
    def __init__(self, output: str = "// generated worker\n") -> None:
        self.output = output
        self.calls: list[dict] = []

    def __call__(self, config: dict) -> GeneratedWorker:
        self.calls.append(config)
        return GeneratedWorker(sw_string=self.output)


@pytest.fixture()
def generator() -> RecordingGenerator:
    return RecordingGenerator()


def stub_helper(_options) -> str:
    return HELPER_URL
