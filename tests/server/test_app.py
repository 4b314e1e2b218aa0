"""Tests for the assembled application."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from snapserve.config.models import PathsConfig, SnapserveConfig
from snapserve.core.errors import BundleError
from snapserve.server.app import create_app
from snapserve.server.lifecycle import ServerController
from snapserve.server.middleware import REQUEST_ID_HEADER


def _config(tmp_path: Path, mode: str) -> SnapserveConfig:
    return SnapserveConfig(
        mode=mode,
        paths=PathsConfig(output_dir=tmp_path / "dist", source_dir=tmp_path / "build"),
    )


@pytest.fixture
def prod_client(tmp_path: Path, write_bundle_dir: Callable[..., Path]) -> Iterator[TestClient]:
    config = _config(tmp_path, "production")
    write_bundle_dir(config.paths.output_dir)
    controller = ServerController.create(config)
    with TestClient(create_app(controller)) as client:
        yield client


@pytest.fixture
def dev_client(tmp_path: Path, write_bundle_dir: Callable[..., Path]) -> Iterator[TestClient]:
    config = _config(tmp_path, "development")
    write_bundle_dir(config.paths.source_dir)
    controller = ServerController.create(config)
    with TestClient(create_app(controller)) as client:
        yield client


class TestServerController:
    def test_production_requires_bundle(self, tmp_path: Path) -> None:
        with pytest.raises(BundleError):
            ServerController.create(_config(tmp_path, "production"))

    def test_production_gate_ready_immediately(
        self, tmp_path: Path, write_bundle_dir: Callable[..., Path]
    ) -> None:
        config = _config(tmp_path, "production")
        write_bundle_dir(config.paths.output_dir)

        controller = ServerController.create(config)

        assert controller.gate.is_ready
        assert controller.builder is None

    def test_development_starts_pending(self, tmp_path: Path) -> None:
        controller = ServerController.create(_config(tmp_path, "development"))

        assert not controller.gate.is_ready
        assert controller.builder is not None
        assert controller.builder.storage is controller.storage


class TestProduction:
    def test_page_rendered_and_snapshot_written(
        self, prod_client: TestClient, tmp_path: Path
    ) -> None:
        response = prod_client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html"
        assert response.headers["server"].startswith("starlette/")
        snapshot = tmp_path / "dist" / "static" / "home.html"
        assert snapshot.read_bytes() == response.content

    def test_snapshot_served_by_static_files(
        self, prod_client: TestClient, tmp_path: Path
    ) -> None:
        first = prod_client.get("/all")
        (tmp_path / "dist" / "static" / "all.html").write_bytes(b"<p>from disk</p>")

        second = prod_client.get("/all?ref=x")

        assert b"<li>first</li>" in first.content
        assert second.status_code == 200
        assert second.content == b"<p>from disk</p>"

    def test_snapshot_hit_keeps_server_header(self, prod_client: TestClient) -> None:
        miss = prod_client.get("/")
        hit = prod_client.get("/")

        assert hit.content == miss.content
        assert hit.headers["server"] == miss.headers["server"]
        assert hit.headers["server"].startswith("starlette/")

    def test_dynamic_page_not_snapshotted(self, prod_client: TestClient, tmp_path: Path) -> None:
        response = prod_client.get("/song/3")

        assert b"<article>Song 3</article>" in response.content
        assert not (tmp_path / "dist" / "static").exists()

    def test_assets_served_from_output_dir(self, prod_client: TestClient) -> None:
        response = prod_client.get("/app.js")

        assert response.status_code == 200
        assert response.text == "console.log('app')"

    def test_missing_asset_is_404(self, prod_client: TestClient) -> None:
        assert prod_client.get("/nope.js").status_code == 404


class TestDevelopment:
    def test_page_rendered(self, dev_client: TestClient, tmp_path: Path) -> None:
        response = dev_client.get("/")

        assert response.status_code == 200
        assert b"Welcome home" in response.content
        assert not (tmp_path / "dist" / "static").exists()

    def test_assets_served_from_memory(self, dev_client: TestClient) -> None:
        response = dev_client.get("/app.css")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/css")
        assert response.text == "body{margin:0}"

    def test_status_lists_snapshots(self, dev_client: TestClient) -> None:
        dev_client.get("/")

        data = dev_client.get("/-/status").json()

        assert data["mode"] == "development"
        assert data["snapshots"] == ["static/home.html"]
        assert data["builder"] == {"builds": 1, "last_error": None}


class TestDiagnostics:
    def test_health(self, prod_client: TestClient) -> None:
        data = prod_client.get("/-/health").json()

        assert data["status"] == "healthy"
        assert data["ready"] is True
        assert "uptime_seconds" in data

    def test_status(self, prod_client: TestClient) -> None:
        prod_client.get("/song/1")

        data = prod_client.get("/-/status").json()

        assert data["mode"] == "production"
        assert data["bundle"]["version"] == 1
        assert data["bundle"]["routes"] == ["/", "/all", "/song/{id}"]
        assert data["render_cache"]["max_entries"] == 1000
        assert data["render_cache"]["size"] == 2
        assert "builder" not in data


class TestMiddleware:
    def test_request_id_generated(self, prod_client: TestClient) -> None:
        response = prod_client.get("/-/health")

        assert len(response.headers[REQUEST_ID_HEADER]) == 12

    def test_request_id_echoed(self, prod_client: TestClient) -> None:
        response = prod_client.get("/", headers={REQUEST_ID_HEADER: "abc-123"})

        assert response.headers[REQUEST_ID_HEADER] == "abc-123"

    def test_invalid_request_id_replaced(self, prod_client: TestClient) -> None:
        response = prod_client.get("/-/health", headers={REQUEST_ID_HEADER: "bad id!"})

        assert response.headers[REQUEST_ID_HEADER] != "bad id!"

    def test_large_pages_gzipped(
        self,
        tmp_path: Path,
        write_bundle_dir: Callable[..., Path],
        server_bundle_data: dict[str, Any],
    ) -> None:
        server_bundle_data["components"]["home"]["children"] = ["x" * 4096]
        config = _config(tmp_path, "production")
        write_bundle_dir(config.paths.output_dir, server_bundle=server_bundle_data)

        with TestClient(create_app(ServerController.create(config))) as client:
            home = client.get("/", headers={"Accept-Encoding": "gzip"})

        assert home.status_code == 200
        assert home.headers["content-encoding"] == "gzip"
        assert "x" * 4096 in home.text
