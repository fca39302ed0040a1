"""
Logging configuration for the auth backend.

The level follows the ``debug`` flag of the resolved settings so one switch in
``settings/<environment>.yaml`` (or ``APP_DEBUG``) turns on verbose output,
including SQL statement logging.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from auth_backend.core.config import Settings


def setup_logging(debug: Optional[bool] = None, settings: Optional["Settings"] = None) -> None:
    """Configure logging for the application.

    Parameters
    ----------
    debug : bool, optional
        Override debug mode. If None, reads from ``settings``.
    settings : Settings, optional
        Resolved settings. If None, the process settings are loaded.
    """
    if settings is None:
        from auth_backend.core.config import get_settings

        settings = get_settings()
    debug_enabled = debug if debug is not None else settings.debug
    log_level = logging.DEBUG if debug_enabled else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    statement_level = settings.database.connect_options().log_statements
    if debug_enabled and statement_level is not None:
        logging.getLogger("sqlalchemy.engine").setLevel(statement_level)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured",
        extra={
            "public_url": settings.application.public_url,
            "debug": debug_enabled,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module.

    Parameters
    ----------
    name : str
        Module name, typically __name__

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    return logging.getLogger(name)
