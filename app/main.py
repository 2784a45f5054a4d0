"""
FastAPI application entrypoint for the Google Drive gateway.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.routes import router as api_router
from app.core.config import AppSettings, GatewayMode, get_settings
from app.core.logging import configure_logging
from app.dependencies import build_credential_manager, build_drive_access
from app.services import CredentialManager

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    credential_manager: CredentialManager | None = None,
) -> FastAPI:
    """Factory for the FastAPI application.

    The application owns the stateful services: in admin mode it builds the
    credential manager (loading any persisted admin record) and exposes it on
    ``app.state`` for request handlers.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Google Drive Gateway",
        version="0.1.0",
        description="Proxy file-storage operations to Google Drive.",
    )

    if settings.gateway_mode is GatewayMode.ADMIN:
        credential_manager = credential_manager or build_credential_manager(settings)
    else:
        credential_manager = None
    app.state.credential_manager = credential_manager
    app.state.drive_access = build_drive_access(settings, credential_manager)
    logger.info("Gateway started in %s mode.", settings.gateway_mode.value)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.origins_list(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
