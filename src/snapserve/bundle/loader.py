"""Read and validate a bundle from a storage backend."""

from __future__ import annotations

import json
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from snapserve.bundle.models import Bundle, ClientManifest, ServerBundle
from snapserve.config.constants import CLIENT_MANIFEST_FILE, SERVER_BUNDLE_FILE
from snapserve.core.errors import BundleError, StorageError
from snapserve.storage.base import StorageBackend

logger = structlog.get_logger()

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _read_json(storage: StorageBackend, path: str) -> Any:
    try:
        raw = storage.read_bytes(path)
    except StorageError:
        raise BundleError.file_missing(path) from None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BundleError.invalid_json(path, str(e)) from e


def _validate(model: type[_ModelT], data: Any, path: str) -> _ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err["loc"])
        raise BundleError.schema_error(path, f"{loc}: {err['msg']}") from e


def load_bundle(
    storage: StorageBackend,
    *,
    server_bundle_path: str = SERVER_BUNDLE_FILE,
    client_manifest_path: str = CLIENT_MANIFEST_FILE,
) -> Bundle:
    """Load the server bundle + client manifest pair.

    Raises:
        BundleError: A file is missing, is not JSON, fails validation, or
            references a component the bundle does not define.
    """
    server_bundle = _validate(
        ServerBundle, _read_json(storage, server_bundle_path), server_bundle_path
    )
    client_manifest = _validate(
        ClientManifest, _read_json(storage, client_manifest_path), client_manifest_path
    )

    for name, referenced_by in server_bundle.references():
        if name not in server_bundle.components:
            raise BundleError.unknown_component(name, referenced_by)

    logger.debug(
        "bundle_loaded",
        storage=storage.name,
        components=len(server_bundle.components),
        routes=len(server_bundle.routes),
    )
    return Bundle(server_bundle=server_bundle, client_manifest=client_manifest)
