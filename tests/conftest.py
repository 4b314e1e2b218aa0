"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages
and provides a small application bundle shared by the test suites.
"""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of snapserve modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("snapserve"):
        del sys.modules[module_name]

from snapserve.bundle.models import Bundle  # noqa: E402
from snapserve.config.constants import CLIENT_MANIFEST_FILE, SERVER_BUNDLE_FILE  # noqa: E402
from snapserve.storage.base import StorageBackend  # noqa: E402
from snapserve.storage.memory import MemoryStorage  # noqa: E402


def _server_bundle() -> dict[str, Any]:
    return {
        "entry": "app",
        "components": {
            "app": {
                "tag": "div",
                "attrs": {"id": "app"},
                "children": [{"component": "header"}, {"outlet": True}],
            },
            "header": {
                "tag": "header",
                "cache_key": "header",
                "children": [{"tag": "h1", "children": [{"context": "title"}]}],
            },
            "home": {"tag": "main", "children": ["Welcome home"]},
            "all": {
                "tag": "ul",
                "children": [
                    {"tag": "li", "children": ["first"]},
                    {"tag": "li", "children": ["second"]},
                ],
            },
            "song": {
                "tag": "article",
                "cache_key": "song:{id}",
                "children": ["Song ", {"context": "id"}],
            },
            "missing": {"tag": "p", "children": ["Not found"]},
        },
        "routes": [
            {"path": "/", "component": "home"},
            {"path": "/all", "component": "all"},
            {"path": "/song/{id}", "component": "song"},
        ],
        "not_found": "missing",
    }


def _client_manifest() -> dict[str, Any]:
    return {
        "publicPath": "/",
        "all": ["app.js", "app.css", "song.js"],
        "initial": ["app.js", "app.css"],
        "async": ["song.js"],
    }


@pytest.fixture
def server_bundle_data() -> dict[str, Any]:
    return _server_bundle()


@pytest.fixture
def client_manifest_data() -> dict[str, Any]:
    return _client_manifest()


@pytest.fixture
def write_bundle() -> Callable[..., None]:
    """Write bundle JSON files into a storage backend."""

    def _write(
        storage: StorageBackend,
        server_bundle: dict[str, Any] | None = None,
        client_manifest: dict[str, Any] | None = None,
    ) -> None:
        storage.write_text(SERVER_BUNDLE_FILE, json.dumps(server_bundle or _server_bundle()))
        storage.write_text(CLIENT_MANIFEST_FILE, json.dumps(client_manifest or _client_manifest()))

    return _write


@pytest.fixture
def write_bundle_dir() -> Callable[..., Path]:
    """Write bundle JSON files into a real directory (bundler output)."""

    def _write(
        directory: Path,
        server_bundle: dict[str, Any] | None = None,
        client_manifest: dict[str, Any] | None = None,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / SERVER_BUNDLE_FILE).write_text(json.dumps(server_bundle or _server_bundle()))
        (directory / CLIENT_MANIFEST_FILE).write_text(
            json.dumps(client_manifest or _client_manifest())
        )
        (directory / "app.js").write_text("console.log('app')")
        (directory / "app.css").write_text("body{margin:0}")
        return directory

    return _write


@pytest.fixture
def bundle(write_bundle: Callable[..., None]) -> Bundle:
    from snapserve.bundle.loader import load_bundle

    storage = MemoryStorage()
    write_bundle(storage)
    return load_bundle(storage)
