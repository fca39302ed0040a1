"""
Deployment environment detection.

``APP_ENVIRONMENT`` selects which environment-specific settings file is
layered on top of ``base.yaml``. Only the two modes below exist; anything
else is rejected at startup.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from auth_backend.core.errors import UnsupportedEnvironment


ENVIRONMENT_VARIABLE = "APP_ENVIRONMENT"


class Environment(Enum):
    """The possible runtime environment for the application."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> "Environment":
        """Match ``value`` case-insensitively against the known modes.

        Raises
        ------
        UnsupportedEnvironment
            If ``value`` names neither mode.
        """
        lowered = value.lower()
        for member in cls:
            if member.value == lowered:
                return member
        raise UnsupportedEnvironment(value, options=[member.value for member in cls])

    def as_str(self) -> str:
        return self.value

    def filename(self, extension: str = "yaml") -> str:
        return f"{self.value}.{extension}"


def resolve_environment(environ: Mapping[str, str]) -> Environment:
    """Read the deployment mode from ``environ``, defaulting to development."""
    raw = environ.get(ENVIRONMENT_VARIABLE)
    if raw is None:
        return Environment.DEVELOPMENT
    return Environment.parse(raw)
