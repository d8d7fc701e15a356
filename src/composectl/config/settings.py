"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``COMPOSECTL_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``composectl.toml`` found by :func:`find_config`
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from composectl.config.models import ContextConfig, DockerConfig

CONFIG_FILENAME = "composectl.toml"
CONFIG_ENV_VAR = "COMPOSECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file for an invocation.

    $COMPOSECTL_CONFIG wins when set; a value that names no file means
    "no config" rather than falling back to discovery. Otherwise the
    nearest composectl.toml in *start* (default: cwd) or an ancestor.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``composectl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class ComposeSettings(BaseSettings):
    """Settings for the whole CLI, stored on the root click context.

    Attributes:
        config_path: The TOML file that was loaded, or None.
        context: Active deployment context (decides the backend).
        docker: Options of the built-in local backend.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "COMPOSECTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    context: ContextConfig = Field(default_factory=ContextConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)

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
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> ComposeSettings:
        """Construct settings for a CLI invocation.

        Uses the explicit *config_path* when it names a file, otherwise
        discovers ``composectl.toml`` walking up from *start* (default: cwd).
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            where = toml_path or "settings"
            raise click.ClickException(f"Invalid configuration in {where}: {exc}") from exc
        finally:
            _tls.toml_path = None
