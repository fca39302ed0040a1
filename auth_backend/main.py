"""
Main application entrypoint for the auth backend.

Settings are resolved once at startup; a ``ConfigurationError`` aborts the
process before anything binds a socket. The app exposes the baseline
operational endpoints:
  - /health: shallow liveness check confirming the process is running
  - /ready: readiness check confirming settings still resolve
  - /metrics: Prometheus exposition endpoint for scraping
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest
from starlette.responses import Response

from auth_backend.core.config import Settings, get_environment, get_settings, load_settings, settings_directory
from auth_backend.core.errors import ConfigurationError
from auth_backend.core.logging import get_logger, setup_logging


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, settings_dir: Optional[Path] = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Parameters
    ----------
    settings : Settings, optional
        Pre-resolved settings. If None, they are loaded from ``settings_dir``.
    settings_dir : Path, optional
        Directory the readiness check re-reads on every call. Defaults to
        ``<cwd>/settings``.

    Returns
    -------
    FastAPI
        Configured FastAPI app with the settings and the startup environment
        on ``app.state``.
    """
    directory = Path(settings_dir) if settings_dir is not None else settings_directory()
    environment = get_environment()
    if settings is None:
        settings = load_settings(directory, os.environ)
    setup_logging(settings=settings)

    app = FastAPI(
        title="Auth Backend",
        debug=settings.debug,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.environment = environment
    app.state.settings_dir = directory

    registry = CollectorRegistry()
    readiness_gauge = Gauge("backend_readiness", "Readiness state", registry=registry)
    liveness_gauge = Gauge("backend_liveness", "Liveness state", registry=registry)
    readiness_gauge.set(1)
    liveness_gauge.set(1)

    @app.get("/health", tags=["ops"])
    def health() -> dict[str, str]:
        """Return basic liveness signal."""
        return {"status": "ok"}

    @app.get("/ready", tags=["ops"])
    def ready() -> dict[str, str]:
        """Return readiness signal based on a fresh settings resolution."""
        try:
            load_settings(app.state.settings_dir, os.environ)
        except ConfigurationError as e:
            logger.error(f"Readiness check failed: {e}")
            readiness_gauge.set(0)
            return {"status": "not_ready", "error": type(e).__name__}
        readiness_gauge.set(1)
        return {"status": "ready", "environment": app.state.environment.as_str()}

    @app.get("/metrics", tags=["ops"])
    def metrics() -> Response:
        """Expose Prometheus metrics for scraping."""
        data = generate_latest(registry)
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


def run() -> None:
    """Console entry point: resolve settings, then serve with uvicorn."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.critical(f"Failed to load settings: {e}")
        sys.exit(1)

    app = create_app(settings)
    uvicorn.run(app, host=settings.application.host, port=settings.application.port)


if __name__ == "__main__":
    run()
