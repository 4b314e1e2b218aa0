"""Snapserve error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Bundle
- 4xxx: Render
- 5xxx: Storage
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Bundle (3xxx)
    BUNDLE_FILE_MISSING = 3001
    BUNDLE_INVALID_JSON = 3002
    BUNDLE_SCHEMA_ERROR = 3003
    BUNDLE_UNKNOWN_COMPONENT = 3004

    # Render (4xxx)
    RENDER_FAILED = 4001

    # Storage (5xxx)
    STORAGE_NOT_FOUND = 5001
    STORAGE_NOT_A_DIRECTORY = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class SnapserveError(Exception):
    """Base error with structured context for logs and diagnostics."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'BUNDLE_FILE_MISSING')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SnapserveError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class BundleError(SnapserveError):
    """Server bundle or client manifest could not be loaded."""

    @classmethod
    def file_missing(cls, path: str) -> "BundleError":
        return cls(
            code=ErrorCode.BUNDLE_FILE_MISSING,
            message=f"Bundle file not found: {path}",
            retryable=True,
            details={"path": path},
        )

    @classmethod
    def invalid_json(cls, path: str, reason: str) -> "BundleError":
        return cls(
            code=ErrorCode.BUNDLE_INVALID_JSON,
            message=f"Bundle file {path} is not valid JSON: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def schema_error(cls, path: str, reason: str) -> "BundleError":
        return cls(
            code=ErrorCode.BUNDLE_SCHEMA_ERROR,
            message=f"Bundle file {path} failed validation: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unknown_component(cls, name: str, referenced_by: str) -> "BundleError":
        return cls(
            code=ErrorCode.BUNDLE_UNKNOWN_COMPONENT,
            message=f"Unknown component '{name}' referenced by {referenced_by}",
            details={"component": name, "referenced_by": referenced_by},
        )


class RenderError(SnapserveError):
    """Rendering a page failed part-way through the stream."""

    @classmethod
    def failed(cls, url: str, reason: str) -> "RenderError":
        return cls(
            code=ErrorCode.RENDER_FAILED,
            message=f"Render of {url} failed: {reason}",
            details={"url": url, "reason": reason},
        )


class StorageError(SnapserveError):
    """Storage backend errors."""

    @classmethod
    def not_found(cls, path: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_NOT_FOUND,
            message=f"No such file: {path}",
            details={"path": path},
        )

    @classmethod
    def not_a_directory(cls, path: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_NOT_A_DIRECTORY,
            message=f"Parent directory does not exist: {path}",
            details={"path": path},
        )


class InternalError(SnapserveError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
