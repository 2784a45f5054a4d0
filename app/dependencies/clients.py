"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Stateful services (the credential manager and the drive access strategy) are
built once by the application factory and stored on ``app.state``; the
dependencies below hand them to request handlers.
"""

from functools import lru_cache
from http import HTTPStatus
from typing import Optional

from fastapi import HTTPException, Request

from app.clients import GoogleDriveClient, GoogleOAuthClient, OAuthStateEncoder
from app.clients.token_store import TokenStore, select_token_store
from app.core.config import AppSettings, GatewayMode, get_settings
from app.services import (
    AdminDriveAccess,
    CredentialManager,
    DriveAccess,
    ServiceAccountDriveAccess,
    UserTokenDriveAccess,
    build_token_cipher,
)


@lru_cache()
def _settings() -> AppSettings:
    """Internal helper to cache settings for client factories."""
    return get_settings()


def _build_oauth_client(settings: AppSettings) -> GoogleOAuthClient:
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    try:
        return _build_oauth_client(_settings())
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    secret = settings.google.client_secret or settings.security.token_encryption_secret
    if not secret:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="GOOGLE_CLIENT_SECRET must be configured.",
        )
    return OAuthStateEncoder(secret_key=secret)


def build_token_store(settings: AppSettings) -> TokenStore:
    """Select the admin token backend; configured refresh tokens win over the file."""
    return select_token_store(
        refresh_token=settings.admin.refresh_token,
        email=settings.admin.email,
        name=settings.admin.name,
        token_file=settings.admin.token_file,
        cipher=build_token_cipher(settings.security.token_encryption_secret),
    )


def build_credential_manager(
    settings: AppSettings,
    *,
    store: TokenStore | None = None,
    oauth_client: GoogleOAuthClient | None = None,
) -> CredentialManager:
    """Build the admin credential manager and load any persisted record."""
    folder_id = settings.google.drive_folder_id

    def _drive_client_factory(credentials) -> GoogleDriveClient:
        return GoogleDriveClient(credentials, default_folder_id=folder_id)

    manager = CredentialManager(
        store=store or build_token_store(settings),
        oauth_client=oauth_client or _build_oauth_client(settings),
        disconnect_key=settings.admin.disconnect_key,
        drive_client_factory=_drive_client_factory,
    )
    manager.load_admin()
    return manager


def build_drive_access(
    settings: AppSettings, manager: CredentialManager | None = None
) -> DriveAccess:
    """Pick the credential strategy for the configured gateway mode."""
    if settings.gateway_mode is GatewayMode.SERVICE_ACCOUNT:
        return ServiceAccountDriveAccess(
            service_account_key=settings.google.service_account_key,
            default_folder_id=settings.google.drive_folder_id,
        )
    if settings.gateway_mode is GatewayMode.USER_OAUTH:
        return UserTokenDriveAccess()
    if manager is None:
        raise ValueError("Admin mode requires a credential manager.")
    return AdminDriveAccess(manager)


def get_optional_credential_manager(request: Request) -> Optional[CredentialManager]:
    """Return the credential manager when the application runs in admin mode."""
    return getattr(request.app.state, "credential_manager", None)


def get_credential_manager(request: Request) -> CredentialManager:
    """Return the credential manager owned by the running application."""
    manager = get_optional_credential_manager(request)
    if manager is None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Admin credential management is only available in admin mode.",
        )
    return manager


def get_drive_access(request: Request) -> DriveAccess:
    """Return the drive access strategy selected at startup."""
    return request.app.state.drive_access


__all__ = [
    "build_credential_manager",
    "build_drive_access",
    "build_token_store",
    "get_credential_manager",
    "get_drive_access",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_optional_credential_manager",
]
