"""Core module exports."""

from snapserve.core.errors import (
    BundleError,
    ConfigError,
    ErrorCode,
    InternalError,
    RenderError,
    SnapserveError,
    StorageError,
)
from snapserve.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "BundleError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "RenderError",
    "SnapserveError",
    "StorageError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
