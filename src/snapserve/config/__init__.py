"""Config module exports."""

from snapserve.config.loader import load_config
from snapserve.config.models import (
    LoggingConfig,
    PathsConfig,
    ServerConfig,
    SnapserveConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "PathsConfig",
    "ServerConfig",
    "SnapserveConfig",
]
