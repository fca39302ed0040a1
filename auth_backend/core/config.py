"""
Application configuration for the auth backend.

Settings are layered, later sources overriding earlier ones:

  1. ``settings/base.yaml``            defaults shared by every environment
  2. ``settings/<environment>.yaml``   selected by ``APP_ENVIRONMENT``
  3. ``APP_*`` environment variables   e.g. ``APP_APPLICATION__PORT=5001``

Every field is required. Resolution is all-or-nothing: either a complete,
frozen ``Settings`` comes back or a ``ConfigurationError`` is raised.
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from auth_backend.core.database import PgConnectOptions, SslMode
from auth_backend.core.environment import Environment, resolve_environment
from auth_backend.core.errors import (
    ConfigParseError,
    ConfigurationError,
    FieldTypeError,
    MissingFieldError,
)
from auth_backend.core.logging import get_logger
from auth_backend.core.sources import EnvironmentSource, file_source, find_origin, source_name


logger = get_logger(__name__)

Port = Annotated[int, Field(ge=0, le=65535)]
U64 = Annotated[int, Field(ge=0, le=2**64 - 1)]

SETTINGS_DIRECTORY = "settings"
BASE_FILENAME = "base.yaml"

# Layers for the Settings() call in progress, lowest priority first
_active_layers: ContextVar[tuple[PydanticBaseSettingsSource, ...]] = ContextVar(
    "settings_layers", default=()
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)


class ApplicationSettings(_Frozen):
    """Network-facing identity of the service."""

    port: Port
    host: str
    base_url: str
    protocol: str

    @property
    def public_url(self) -> str:
        if "://" in self.base_url:
            return self.base_url
        return f"{self.protocol}://{self.base_url}"


class DatabaseSettings(_Frozen):
    username: str
    password: str = Field(repr=False)
    port: Port
    host: str
    database_name: str
    require_ssl: bool

    def connect_options(self) -> PgConnectOptions:
        """Build connection options for PostgreSQL.

        ``require_ssl`` selects between ``require`` and ``prefer``; plaintext
        is never forced on. Statement logging is switched to the verbose
        level. No connection is attempted.
        """
        ssl_mode = SslMode.REQUIRE if self.require_ssl else SslMode.PREFER
        return PgConnectOptions(
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            database=self.database_name,
            ssl_mode=ssl_mode,
            log_statements=logging.DEBUG,
        )


class RedisSettings(_Frozen):
    uri: str
    pool_max_open: U64
    pool_max_idle: U64
    pool_timeout_seconds: U64
    pool_expire_seconds: U64

    def pool_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``redis.BlockingConnectionPool.from_url``.

        ``timeout`` is how long a caller waits for a free pooled connection.
        """
        return {
            "max_connections": self.pool_max_open,
            "timeout": self.pool_timeout_seconds,
        }


class Settings(BaseSettings):
    """Global settings exposing every preconfigured value."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    application: ApplicationSettings
    debug: bool
    database: DatabaseSettings
    redis: RedisSettings

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        layers = _active_layers.get()
        if not layers:
            return (init_settings,)
        # pydantic-settings gives the first source the highest priority
        return tuple(reversed(layers))


def build_sources(
    base_dir: Path, environment: Environment, environ: Mapping[str, str]
) -> list[PydanticBaseSettingsSource]:
    """The ordered layers for one resolution, lowest priority first."""
    return [
        file_source(Settings, base_dir / BASE_FILENAME),
        file_source(Settings, base_dir / environment.filename()),
        EnvironmentSource(Settings, environ),
    ]


def _translate(exc: ValidationError, sources: Sequence[PydanticBaseSettingsSource]) -> ConfigurationError:
    error = exc.errors()[0]
    loc = error["loc"]
    path = ".".join(str(part) for part in loc)
    if error["type"] == "missing":
        return MissingFieldError(path)
    return FieldTypeError(path, error["msg"], source=find_origin(sources, loc))


def resolve_settings(sources: Sequence[PydanticBaseSettingsSource]) -> Settings:
    """Validate ``Settings`` from ``sources``, later sources winning."""
    for source in sources:
        logger.debug("Applying configuration source %s", source_name(source))

    token = _active_layers.set(tuple(sources))
    try:
        return Settings()
    except ValidationError as exc:
        raise _translate(exc, sources) from exc
    except SettingsError as exc:
        raise ConfigParseError(source_name(sources[-1]), exc) from exc
    finally:
        _active_layers.reset(token)


def load_settings(base_dir: Path, environ: Mapping[str, str]) -> Settings:
    """Resolve settings from ``base_dir`` and the injected ``environ``.

    Parameters
    ----------
    base_dir : Path
        Directory holding ``base.yaml`` and ``<environment>.yaml``.
    environ : Mapping[str, str]
        Environment variables; ``APP_ENVIRONMENT`` picks the environment file
        and ``APP_*`` keys override file values.

    Raises
    ------
    ConfigurationError
        Any failure: unknown environment, missing or malformed file,
        missing field or a value of the wrong type.
    """
    environment = resolve_environment(environ)
    logger.info("Loading settings for environment %s from %s", environment.as_str(), base_dir)
    return resolve_settings(build_sources(Path(base_dir), environment, environ))


def settings_directory() -> Path:
    return Path.cwd() / SETTINGS_DIRECTORY


@lru_cache(maxsize=1)
def get_settings(base_dir: Optional[Path] = None) -> Settings:
    """Load process settings once from ``<cwd>/settings`` and ``os.environ``.

    Returns
    -------
    Settings
        Frozen settings object safe to share across the application.
    """
    return load_settings(base_dir if base_dir is not None else settings_directory(), os.environ)


def get_environment() -> Environment:
    return resolve_environment(os.environ)
