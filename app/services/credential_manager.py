"""
Lifecycle management for the shared admin OAuth credential.

The manager owns the single :class:`AdminCredential` the gateway acts on
behalf of in admin mode. It loads the record once at startup from the selected
token store, exchanges the refresh token for a fresh access token on every
authenticated call, and handles the one-time setup and the disconnect action.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from google.oauth2.credentials import Credentials

from app.clients.google_auth import GoogleOAuthClient, OAuthTokenExchangeError
from app.clients.google_drive import GoogleDriveClient
from app.clients.token_store import TokenPersistenceError, TokenSource, TokenStore
from app.models.oauth import AdminCredential

logger = logging.getLogger(__name__)

DriveClientFactory = Callable[[Credentials], GoogleDriveClient]


class AdminNotConfiguredError(Exception):
    """Raised when an admin-backed call is made before setup has completed."""


class AdminUnauthorizedError(Exception):
    """Raised when an admin action is attempted without the shared secret."""


class TokenRefreshError(Exception):
    """Raised when the refresh token can no longer produce an access token."""


class CredentialManager:
    """Holds the admin credential and hands out call-ready Drive clients."""

    def __init__(
        self,
        *,
        store: TokenStore,
        oauth_client: GoogleOAuthClient,
        disconnect_key: str | None = None,
        drive_client_factory: DriveClientFactory | None = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._disconnect_key = disconnect_key
        self._drive_client_factory = drive_client_factory or GoogleDriveClient
        self._admin: Optional[AdminCredential] = None

    @property
    def source(self) -> TokenSource:
        return self._store.source

    @property
    def admin(self) -> Optional[AdminCredential]:
        return self._admin

    def load_admin(self) -> Optional[AdminCredential]:
        """Load the persisted record; absence is a normal state, never an error."""
        record = self._store.read()
        if record is None:
            logger.info("No admin credential found; gateway is unconfigured.")
        else:
            logger.info(
                "Loaded admin credential for %s from %s.",
                record.email or "unknown account",
                self._store.source.value,
            )
        self._admin = record
        return record

    def is_configured(self) -> bool:
        return self._admin is not None and bool(self._admin.refresh_token)

    async def get_authenticated_client(self) -> GoogleDriveClient:
        """
        Refresh the admin access token and return a Drive client bound to it.

        A refresh round-trip happens on every call. A failed refresh leaves the
        stored record untouched so a transient outage cannot destroy a valid
        refresh token.
        """
        admin = self._admin
        if admin is None or not admin.refresh_token:
            raise AdminNotConfiguredError(
                "Admin account is not configured. Complete the OAuth setup first."
            )

        try:
            access_token, expires_in = await self._oauth.refresh_token(admin.refresh_token)
        except OAuthTokenExchangeError as exc:
            logger.warning("Admin access token refresh failed: %s", exc)
            raise TokenRefreshError(
                "Failed to refresh admin access token; re-authentication required."
            ) from exc

        expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        # Setup or disconnect may have replaced the record while we were waiting.
        if self._admin is admin:
            admin.access_token = access_token
            admin.expiry_date = expiry
            self._persist(admin)

        credentials = Credentials(
            token=access_token,
            token_uri=GoogleOAuthClient.TOKEN_URL,
            client_id=self._oauth.client_id,
            client_secret=self._oauth.client_secret,
            scopes=self._oauth.scopes,
            # google-auth compares expiry against naive UTC timestamps.
            expiry=expiry.replace(tzinfo=None),
        )
        return self._drive_client_factory(credentials)

    async def complete_setup(self, code: str) -> AdminCredential:
        """Exchange an authorization code and install the result as the admin."""
        access_token, refresh_token, expires_in = await self._oauth.exchange_authorization_code(
            code
        )
        if not refresh_token:
            raise OAuthTokenExchangeError(
                "Google did not issue a refresh token. Revoke the app's access and retry."
            )
        user = await self._oauth.fetch_user_info(access_token)

        now = datetime.now(timezone.utc)
        record = AdminCredential(
            refresh_token=refresh_token,
            access_token=access_token,
            expiry_date=now + timedelta(seconds=expires_in),
            email=user.get("email"),
            name=user.get("name"),
            setup_date=now,
        )
        self._admin = record
        self._persist(record)

        if self._store.source is TokenSource.ENVIRONMENT:
            logger.warning(
                "Admin setup completed for %s, but the configured refresh token "
                "takes precedence after restart.",
                record.email,
            )
        else:
            logger.info("Admin setup completed for %s.", record.email)
        return record

    def disconnect(self, provided_key: str | None) -> None:
        """Forget the admin credential, guarded by the configured shared secret."""
        if self._disconnect_key:
            if not provided_key or not hmac.compare_digest(
                provided_key.encode("utf-8"), self._disconnect_key.encode("utf-8")
            ):
                raise AdminUnauthorizedError("Invalid admin key.")

        previous = self._admin
        self._admin = None
        try:
            self._store.delete()
        except TokenPersistenceError as exc:
            logger.warning("Could not remove persisted admin credential: %s", exc)
        logger.info(
            "Admin account %s disconnected.",
            previous.email if previous else "(none)",
        )

    def _persist(self, record: AdminCredential) -> None:
        try:
            self._store.write(record)
        except TokenPersistenceError as exc:
            logger.error("Admin credential not persisted: %s", exc)


__all__ = [
    "AdminNotConfiguredError",
    "AdminUnauthorizedError",
    "CredentialManager",
    "TokenRefreshError",
]
