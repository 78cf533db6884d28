"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``LISTSYNC_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``listsync.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from listsync.config.discovery import find_config
from listsync.config.models import DispatchConfig, ListsConfig, SessionConfig, StoreConfig


class ConfigError(ValueError):
    """The config file exists but cannot be parsed."""


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``listsync.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class ListsyncSettings(BaseSettings):
    """Settings for the listsync CLI and library entry points.

    Attributes:
        workspace_root: Directory holding ``listsync.toml`` (or CWD if no
            config was found). The store path is resolved against it.
        config_path: The config file in use, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LISTSYNC_",
        "env_nested_delimiter": "__",
    }

    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    # --- TOML sections ---
    lists: ListsConfig = Field(default_factory=ListsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    @property
    def store_path(self) -> Path:
        """Absolute path of the SQLite store."""
        path = Path(self.store.path)
        return path if path.is_absolute() else self.workspace_root / path

    @property
    def dispatch_sync(self) -> bool:
        """Whether commands and events are delivered synchronously."""
        return self.sync or self.dispatch.sync

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> ListsyncSettings:
        """Construct settings from a CLI invocation.

        Discovers ``listsync.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides. ``None`` flag
        values are dropped so they never mask env or TOML values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(workspace_root)

        root = workspace_root
        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        overrides = {key: value for key, value in cli_flags.items() if value is not None}

        _tls.toml_path = toml_path
        try:
            return cls(workspace_root=root, config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
