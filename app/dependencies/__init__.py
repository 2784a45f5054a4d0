"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    build_credential_manager,
    build_drive_access,
    build_token_store,
    get_credential_manager,
    get_drive_access,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_optional_credential_manager,
)
from .config import get_app_settings, require_gateway_mode

__all__ = [
    "build_credential_manager",
    "build_drive_access",
    "build_token_store",
    "get_app_settings",
    "get_credential_manager",
    "get_drive_access",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_optional_credential_manager",
    "require_gateway_mode",
]
