"""SQL Workbench settings: backend URL, database, token and timeout.

Settings come from several layers, highest priority first:
1. CLI flags (--url, --database, --token, --timeout)
2. Environment variables (SQL_WORKBENCH_URL, SQL_WORKBENCH_DATABASE, ...)
3. Named profile (--profile or SQL_WORKBENCH_PROFILE env var)
4. Config file defaults
5. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError, field_validator

from sql_workbench.core.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sql-workbench" / "config.toml"

PROFILE_ENV_VAR = "SQL_WORKBENCH_PROFILE"

_ENV_VARS: dict[str, str] = {
    "SQL_WORKBENCH_URL": "url",
    "SQL_WORKBENCH_DATABASE": "database",
    "SQL_WORKBENCH_TOKEN": "token",  # pragma: allowlist secret
    "SQL_WORKBENCH_TIMEOUT": "timeout",
}
_ENV_NAMES = {key: env_var for env_var, key in _ENV_VARS.items()}

_CLI_KEYS = ("url", "database", "token", "timeout")

_BUILTIN_DEFAULTS: dict[str, Any] = {
    "url": "http://localhost:8000",
    "database": None,
    "token": None,
    "timeout": 30.0,
    "default_format": "table",
}


def _validate_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        msg = f"Invalid backend URL: '{v}'. Expected an http:// or https:// URL"
        raise ValueError(msg)
    return v.rstrip("/")


def _validate_timeout(v: float) -> float:
    if v <= 0:
        msg = f"Invalid timeout: {v}. Must be greater than 0"
        raise ValueError(msg)
    return v


class BackendProfile(BaseModel):
    url: str = "http://localhost:8000"
    database: str | None = None
    token: str | None = None
    timeout: float | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_url(v)

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        return v if v is None else _validate_timeout(v)


class AppConfig(BaseModel):
    default_timeout: float = 30.0
    default_format: str = "table"
    default_profile: str | None = None
    initial_query: str | None = None
    profiles: dict[str, BackendProfile] = {}


class ResolvedConfig(BaseModel):
    url: str = "http://localhost:8000"
    database: str | None = None
    token: str | None = None
    timeout: float = 30.0
    default_format: str = "table"
    initial_query: str | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_url(v)

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        return _validate_timeout(v)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Read the TOML config file; a missing file means built-in defaults."""
    path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return AppConfig()
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {path}: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def _pick_profile(config: AppConfig, requested: str | None) -> str | None:
    name = requested or os.environ.get(PROFILE_ENV_VAR) or config.default_profile
    if name and name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) or "none"
        raise ConfigError(f"Unknown profile: '{name}'. Available profiles: {available}")
    return name or None


def _env_layer() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_var, key in _ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        if key == "timeout":
            try:
                values[key] = float(raw)
            except ValueError:
                msg = f"Invalid {env_var} value: '{raw}'. Must be a number"
                raise ConfigError(msg) from None
        else:
            values[key] = raw
    return values


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Merge built-ins, config file, profile, environment and CLI flags.

    Later layers win. `sources` names the layer each setting came from, for
    `config show`.
    """
    active_profile = _pick_profile(config, profile_name)

    file_defaults: dict[str, Any] = {}
    if "default_timeout" in config.model_fields_set:
        file_defaults["timeout"] = config.default_timeout
    if "default_format" in config.model_fields_set:
        file_defaults["default_format"] = config.default_format

    profile_values: dict[str, Any] = {}
    if active_profile:
        profile = config.profiles[active_profile]
        profile_values = {
            key: getattr(profile, key)
            for key in profile.model_fields_set
            if getattr(profile, key) is not None
        }

    layers: list[tuple[Callable[[str], str], dict[str, Any]]] = [
        (lambda key: "default", dict(_BUILTIN_DEFAULTS)),
        (lambda key: "config", file_defaults),
        (lambda key: f"profile: {active_profile}", profile_values),
        (lambda key: f"env: {_ENV_NAMES[key]}", _env_layer()),
        (
            lambda key: f"cli: --{key}",
            {k: v for k, v in cli_overrides.items() if k in _CLI_KEYS and v is not None},
        ),
    ]

    settings: dict[str, Any] = {}
    sources: dict[str, str] = {}
    for describe, values in layers:
        for key, value in values.items():
            settings[key] = value
            sources[key] = describe(key)

    try:
        return ResolvedConfig(
            **settings,
            initial_query=config.initial_query,
            active_profile=active_profile,
            sources=sources,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
