"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SNAPSERVE__SECTION__KEY)
3. Project YAML (snapserve.yaml)
4. Global YAML (~/.config/snapserve/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SNAPSERVE__<SECTION>__<KEY>=<VALUE>

Examples:
    SNAPSERVE__MODE=development
    SNAPSERVE__SERVER__PORT=3000
    SNAPSERVE__PATHS__OUTPUT_DIR=/srv/app/dist
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from snapserve.config.constants import PORT_MAX, PORT_MIN

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Mode = Literal["development", "production"]


class LogOutputConfig(BaseModel):
    """One log sink: a console stream or an absolute file path."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"
    level: LogLevel | None = Field(default=None, description="Defaults to logging.level.")

    @field_validator("destination")
    @classmethod
    def check_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"log file must be an absolute path, got {v!r}")
        return str(path)


class LoggingConfig(BaseModel):
    """Log level and sinks.

    Multiple outputs are only configurable from YAML, e.g. console at INFO
    plus a JSON file at DEBUG. SNAPSERVE__LOGGING__LEVEL sets the root level.
    """

    level: LogLevel = "INFO"
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP server configuration.

    Env vars:
        SNAPSERVE__SERVER__HOST: Bind address (default: 127.0.0.1)
        SNAPSERVE__SERVER__PORT: Port number (default: 8080)
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 for network access.",
    )
    port: int = Field(default=8080, description="Server port.")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (PORT_MIN <= v <= PORT_MAX):
            raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {v}")
        return v


class PathsConfig(BaseModel):
    """Filesystem locations.

    Relative paths are resolved against the project root by load_config().

    Env vars:
        SNAPSERVE__PATHS__OUTPUT_DIR: Compiled bundle + snapshot directory
        SNAPSERVE__PATHS__SOURCE_DIR: Directory the bundler writes to in development
    """

    output_dir: Path = Field(
        default=Path("dist"),
        description="Production bundle location. Snapshots are written under static/.",
    )
    source_dir: Path = Field(
        default=Path("build"),
        description="Watched in development; every change triggers a rebuild.",
    )


class RenderConfig(BaseModel):
    """Page render settings.

    Env vars:
        SNAPSERVE__RENDER__TITLE: Title passed to every render
    """

    title: str = Field(default="Vue Music", description="Page title for every render.")


class TimeoutsConfig(BaseModel):
    """Timeout configuration for server components."""

    server_stop_sec: float = Field(default=5.0, description="Server shutdown timeout.")
    force_exit_sec: float = Field(
        default=3.0,
        description="Force exit timeout after graceful shutdown fails.",
    )


class WatcherConfig(BaseModel):
    """Development rebuild watcher.

    Env vars:
        SNAPSERVE__WATCHER__DEBOUNCE_MS: Quiet period before a rebuild starts
    """

    debounce_ms: int = Field(
        default=300,
        description="Bundlers write several files per build; wait for them to settle.",
    )


class SnapserveConfig(BaseModel):
    """Root configuration for Snapserve."""

    mode: Mode = "production"
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)

    @property
    def is_dev(self) -> bool:
        return self.mode == "development"
