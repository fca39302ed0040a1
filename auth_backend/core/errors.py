"""
Configuration error taxonomy.

Every failure raised while resolving settings is a ``ConfigurationError`` so
the process entry point can catch one type and abort startup. Subclasses
narrow the cause; all of them carry the originating source, the dotted field
path and the underlying exception when known.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ConfigurationError(Exception):
    """Base class for settings resolution failures."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message = message
        self.source = source
        self.path = path
        self.cause = cause
        super().__init__(self.__str__())

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"field={self.path}")
        if self.source:
            parts.append(f"source={self.source}")
        if self.cause is not None:
            parts.append(f"cause={self.cause}")
        return " | ".join(parts)


class UnsupportedEnvironment(ConfigurationError):
    """Raised when APP_ENVIRONMENT names an unknown deployment mode."""

    def __init__(self, value: str, options: Iterable[str] = ("development", "production")) -> None:
        self.value = value
        self.options = tuple(options)
        quoted = " or ".join(f"`{option}`" for option in self.options)
        super().__init__(
            f"{value} is not a supported environment. Use either {quoted}.",
            source="APP_ENVIRONMENT",
        )


class ConfigFileNotFoundError(ConfigurationError):
    def __init__(self, path: str) -> None:
        super().__init__("configuration file not found", source=path)


class ConfigParseError(ConfigurationError):
    def __init__(self, source: str, cause: BaseException) -> None:
        super().__init__("configuration source could not be parsed", source=source, cause=cause)


class MissingFieldError(ConfigurationError):
    def __init__(self, path: str) -> None:
        super().__init__(f"missing field `{path}`", path=path)


class FieldTypeError(ConfigurationError):
    """A value was present but could not be coerced to the declared type."""

    def __init__(self, path: str, message: str, *, source: Optional[str] = None) -> None:
        self.detail = message
        super().__init__(f"invalid value for `{path}`: {message}", source=source, path=path)
