"""
PostgreSQL connection options derived from ``DatabaseSettings``.

Building the options never opens a connection; callers hand them to their
database client (``to_url()`` + ``engine_kwargs()`` for SQLAlchemy).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from sqlalchemy.engine import URL


DRIVER_NAME = "postgresql+psycopg"


class SslMode(str, Enum):
    """libpq ``sslmode`` values used by this service."""

    DISABLE = "disable"
    PREFER = "prefer"
    REQUIRE = "require"


@dataclass(frozen=True)
class PgConnectOptions:
    host: str
    port: int
    username: str
    password: str
    database: str
    ssl_mode: SslMode = SslMode.PREFER
    log_statements: Optional[int] = None

    def to_url(self) -> URL:
        """Render a SQLAlchemy URL carrying the transport-security mode."""
        return URL.create(
            drivername=DRIVER_NAME,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"sslmode": self.ssl_mode.value},
        )

    def engine_kwargs(self) -> dict[str, Any]:
        # SQLAlchemy's "debug" echo also logs result rows
        if self.log_statements is None:
            return {"echo": False}
        return {"echo": "debug" if self.log_statements <= logging.DEBUG else True}

    def __repr__(self) -> str:
        return (
            f"PgConnectOptions(host={self.host!r}, port={self.port}, username={self.username!r}, "
            f"password='***', database={self.database!r}, ssl_mode={self.ssl_mode.value!r}, "
            f"log_statements={self.log_statements!r})"
        )
