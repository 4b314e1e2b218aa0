"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Keyword overrides passed to load_config() (CLI flags)
2. Environment variables (SNAPSERVE__SECTION__KEY, SNAPSERVE__MODE)
3. Project file: <project_root>/snapserve.yaml
4. Global file: ~/.config/snapserve/config.yaml
5. Model defaults

The two YAML files are deep-merged into a single settings source, so a
project file that only sets ``server.port`` keeps the global ``server.host``.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from snapserve.config.models import (
    LoggingConfig,
    Mode,
    PathsConfig,
    RenderConfig,
    ServerConfig,
    SnapserveConfig,
    TimeoutsConfig,
    WatcherConfig,
)
from snapserve.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/snapserve/config.yaml").expanduser()
PROJECT_CONFIG_FILE = "snapserve.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; a missing or empty file is an empty mapping."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), f"expected a mapping, got {type(data).__name__}")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _YamlLayers(PydanticBaseSettingsSource):
    """YAML files merged in order; later files win."""

    def __init__(self, settings_cls: type[BaseSettings], files: Sequence[Path]) -> None:
        super().__init__(settings_cls)
        self.files = tuple(files)
        self._data: dict[str, Any] = {}
        for path in self.files:
            self._data = _deep_merge(self._data, _load_yaml(path))

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_for(files: Sequence[Path]) -> type[BaseSettings]:
    """Settings class bound to one set of YAML files.

    Built per call so concurrent loads for different projects never share
    a source.
    """

    class SnapserveSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="SNAPSERVE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        mode: Mode = "production"
        logging: LoggingConfig = LoggingConfig()
        server: ServerConfig = ServerConfig()
        paths: PathsConfig = PathsConfig()
        render: RenderConfig = RenderConfig()
        timeouts: TimeoutsConfig = TimeoutsConfig()
        watcher: WatcherConfig = WatcherConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _YamlLayers(settings_cls, files))

    return SnapserveSettings


def load_config(project_root: Path | None = None, **kwargs: Any) -> SnapserveConfig:
    """Resolve the configuration for a project.

    Relative ``paths`` entries are resolved against project_root, which
    defaults to the current directory.

    Raises:
        ConfigError: A YAML file does not parse, or a value fails validation.
    """
    root = (project_root or Path.cwd()).resolve()
    settings_cls = _settings_for([GLOBAL_CONFIG_PATH, root / PROJECT_CONFIG_FILE])
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    config = SnapserveConfig.model_validate(settings.model_dump())
    config.paths = PathsConfig(
        output_dir=_resolve(root, config.paths.output_dir),
        source_dir=_resolve(root, config.paths.source_dir),
    )
    return config


def _resolve(root: Path, path: Path) -> Path:
    path = path.expanduser()
    return path if path.is_absolute() else root / path
