"""FastAPI application factory for the analysis gateway."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router as api_router
from .config import get_settings
from .errors import install_error_handlers
from .logging import configure_logging
from .monitoring import ensure_metrics_server


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.logging, settings.service_name)

    metrics_disabled = os.getenv("FACTIFY_DISABLE_METRICS", "false").lower() in {"1", "true", "yes"}
    if settings.monitoring.enabled and not metrics_disabled:
        ensure_metrics_server(settings.monitoring.prometheus_port)

    app = FastAPI(title="Factify Gateway", version=settings.api_version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        allow_credentials=settings.cors.allow_credentials,
    )

    install_error_handlers(app)
    app.include_router(api_router)

    return app
