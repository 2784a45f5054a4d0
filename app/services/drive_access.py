"""Per-mode strategies for turning a request into a ready Drive client."""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account

from app.clients.google_drive import GoogleDriveClient
from app.core.config import GatewayMode
from app.services.credential_manager import CredentialManager

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_SCOPES = ["https://www.googleapis.com/auth/drive"]


class DriveAccessError(Exception):
    """Raised when the gateway lacks the configuration to reach Drive."""


class MissingBearerTokenError(Exception):
    """Raised when a per-user request arrives without a bearer token."""


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        raise MissingBearerTokenError("Authorization header with Bearer token is required")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise MissingBearerTokenError("Authorization header with Bearer token is required")
    return token


class DriveAccess(Protocol):
    mode: GatewayMode

    def is_configured(self) -> bool: ...

    async def client_for(self, authorization: Optional[str]) -> GoogleDriveClient: ...


class ServiceAccountDriveAccess:
    """Every request uses the same service-account identity."""

    mode = GatewayMode.SERVICE_ACCOUNT

    def __init__(self, *, service_account_key: str | None, default_folder_id: str | None = None) -> None:
        self._key = service_account_key
        self._default_folder_id = default_folder_id
        self._credentials: service_account.Credentials | None = None

    def is_configured(self) -> bool:
        return bool(self._key)

    def _load_credentials(self) -> service_account.Credentials:
        if self._credentials is not None:
            return self._credentials
        if not self._key:
            raise DriveAccessError("GOOGLE_SERVICE_ACCOUNT_KEY is not configured.")
        try:
            info = json.loads(self._key)
            self._credentials = service_account.Credentials.from_service_account_info(
                info, scopes=SERVICE_ACCOUNT_SCOPES
            )
        except ValueError as exc:
            logger.error("Invalid service account key: %s", exc)
            raise DriveAccessError("GOOGLE_SERVICE_ACCOUNT_KEY is not a valid key.") from exc
        return self._credentials

    async def client_for(self, authorization: Optional[str]) -> GoogleDriveClient:
        return GoogleDriveClient(
            self._load_credentials(),
            default_folder_id=self._default_folder_id,
            supports_all_drives=True,
        )


class UserTokenDriveAccess:
    """Each request carries the caller's own access token."""

    mode = GatewayMode.USER_OAUTH

    def is_configured(self) -> bool:
        return True

    async def client_for(self, authorization: Optional[str]) -> GoogleDriveClient:
        token = extract_bearer_token(authorization)
        return GoogleDriveClient(user_credentials.Credentials(token=token))


class AdminDriveAccess:
    """All requests act as the shared admin account."""

    mode = GatewayMode.ADMIN

    def __init__(self, manager: CredentialManager) -> None:
        self._manager = manager

    def is_configured(self) -> bool:
        return self._manager.is_configured()

    async def client_for(self, authorization: Optional[str]) -> GoogleDriveClient:
        return await self._manager.get_authenticated_client()


__all__ = [
    "AdminDriveAccess",
    "DriveAccess",
    "DriveAccessError",
    "MissingBearerTokenError",
    "SERVICE_ACCOUNT_SCOPES",
    "ServiceAccountDriveAccess",
    "UserTokenDriveAccess",
    "extract_bearer_token",
]
