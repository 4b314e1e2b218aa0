"""Tests for bundle loading and validation."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from snapserve.bundle.loader import load_bundle
from snapserve.bundle.models import (
    ComponentRef,
    ContextNode,
    ElementNode,
    OutletNode,
)
from snapserve.config.constants import CLIENT_MANIFEST_FILE, SERVER_BUNDLE_FILE
from snapserve.core.errors import BundleError, ErrorCode
from snapserve.storage.memory import MemoryStorage


class TestLoadBundle:
    def test_loads_valid_pair(self, write_bundle: Callable[..., None]) -> None:
        storage = MemoryStorage()
        write_bundle(storage)

        bundle = load_bundle(storage)

        assert bundle.server_bundle.entry == "app"
        assert [r.path for r in bundle.server_bundle.routes] == ["/", "/all", "/song/{id}"]
        assert bundle.client_manifest.initial == ["app.js", "app.css"]
        assert bundle.client_manifest.async_ == ["song.js"]

    def test_node_kinds_are_parsed(self, write_bundle: Callable[..., None]) -> None:
        storage = MemoryStorage()
        write_bundle(storage)

        components = load_bundle(storage).server_bundle.components

        app_children = components["app"].children
        assert isinstance(app_children[0], ComponentRef)
        assert isinstance(app_children[1], OutletNode)
        heading = components["header"].children[0]
        assert isinstance(heading, ElementNode)
        assert isinstance(heading.children[0], ContextNode)
        assert components["home"].children == ["Welcome home"]

    def test_missing_server_bundle(self) -> None:
        storage = MemoryStorage()
        storage.write_text(CLIENT_MANIFEST_FILE, "{}")

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.code == ErrorCode.BUNDLE_FILE_MISSING
        assert exc_info.value.details["path"] == SERVER_BUNDLE_FILE

    def test_missing_client_manifest(self, server_bundle_data: dict[str, Any]) -> None:
        storage = MemoryStorage()
        storage.write_text(SERVER_BUNDLE_FILE, json.dumps(server_bundle_data))

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.details["path"] == CLIENT_MANIFEST_FILE

    def test_invalid_json(self) -> None:
        storage = MemoryStorage()
        storage.write_text(SERVER_BUNDLE_FILE, "{not json")

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.code == ErrorCode.BUNDLE_INVALID_JSON

    def test_schema_violation(self, write_bundle: Callable[..., None]) -> None:
        storage = MemoryStorage()
        write_bundle(storage, server_bundle={"components": {}})

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.code == ErrorCode.BUNDLE_SCHEMA_ERROR
        assert "entry" in exc_info.value.details["reason"]

    def test_unknown_node_shape_rejected(
        self, write_bundle: Callable[..., None], server_bundle_data: dict[str, Any]
    ) -> None:
        server_bundle_data["components"]["home"]["children"] = [{"slot": "default"}]
        storage = MemoryStorage()
        write_bundle(storage, server_bundle=server_bundle_data)

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.code == ErrorCode.BUNDLE_SCHEMA_ERROR

    @pytest.mark.parametrize(
        ("mutate", "referenced_by"),
        [
            (lambda b: b.update(entry="shell"), "entry"),
            (lambda b: b.update(not_found="nope"), "not_found"),
            (lambda b: b["routes"].append({"path": "/x", "component": "x"}), "route /x"),
            (
                lambda b: b["components"]["home"]["children"].append({"component": "nav"}),
                "component home",
            ),
        ],
    )
    def test_unknown_component_reference(
        self,
        write_bundle: Callable[..., None],
        server_bundle_data: dict[str, Any],
        mutate: Callable[[dict[str, Any]], None],
        referenced_by: str,
    ) -> None:
        mutate(server_bundle_data)
        storage = MemoryStorage()
        write_bundle(storage, server_bundle=server_bundle_data)

        with pytest.raises(BundleError) as exc_info:
            load_bundle(storage)
        assert exc_info.value.code == ErrorCode.BUNDLE_UNKNOWN_COMPONENT
        assert exc_info.value.details["referenced_by"] == referenced_by
