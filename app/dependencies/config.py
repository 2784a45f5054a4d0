"""
FastAPI dependency utilities for injecting configuration and gating endpoints.
"""

from functools import lru_cache
from http import HTTPStatus
from typing import Callable

from fastapi import Depends, HTTPException

from app.core.config import AppSettings, GatewayMode, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def require_gateway_mode(*modes: GatewayMode) -> Callable[..., AppSettings]:
    """Build a dependency that rejects requests outside the given gateway modes."""

    def _dependency(settings: AppSettings = Depends(get_app_settings)) -> AppSettings:
        if settings.gateway_mode not in modes:
            raise HTTPException(
                status_code=HTTPStatus.BAD_REQUEST,
                detail=(
                    "Endpoint not available when the gateway runs in "
                    f"{settings.gateway_mode.value} mode."
                ),
            )
        return settings

    return _dependency


__all__ = ["get_app_settings", "require_gateway_mode"]
