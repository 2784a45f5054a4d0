"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the credential manager and
the operational scripts share a consistent configuration surface.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GatewayMode(str, Enum):
    """How the gateway obtains credentials for Drive calls."""

    SERVICE_ACCOUNT = "service_account"
    USER_OAUTH = "user_oauth"
    ADMIN = "admin"


class GoogleSettings(BaseSettings):
    """Configuration required for interacting with Google APIs."""

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: str = Field(
        "http://localhost:3000/api/auth/callback",
        validation_alias="GOOGLE_REDIRECT_URI",
    )
    drive_folder_id: Optional[str] = Field(
        None,
        validation_alias="GOOGLE_DRIVE_FOLDER_ID",
        description="Default parent folder for uploads when the caller names none.",
    )
    service_account_key: Optional[str] = Field(
        None,
        validation_alias="GOOGLE_SERVICE_ACCOUNT_KEY",
        description="Service-account key JSON used in service_account mode.",
    )

    model_config = SettingsConfigDict(extra="ignore")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/drive.file",
            "https://www.googleapis.com/auth/userinfo.email",
            "https://www.googleapis.com/auth/userinfo.profile",
        ),
        validation_alias="OAUTH_SCOPES",
    )

    model_config = SettingsConfigDict(extra="ignore")

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class AdminSettings(BaseSettings):
    """Settings for the shared admin identity used in admin mode."""

    refresh_token: Optional[str] = Field(
        None,
        validation_alias="ADMIN_REFRESH_TOKEN",
        description="Refresh token supplied by the deployment; wins over the token file.",
    )
    email: Optional[str] = Field(None, validation_alias="ADMIN_EMAIL")
    name: Optional[str] = Field(None, validation_alias="ADMIN_NAME")
    token_file: str = Field(".admin_token.json", validation_alias="ADMIN_TOKEN_FILE")
    disconnect_key: Optional[str] = Field(
        None,
        validation_alias="ADMIN_KEY",
        description="Shared secret required to disconnect the admin account.",
    )

    model_config = SettingsConfigDict(extra="ignore")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting the token file."
        ),
    )
    cors_allowed_origins: str = Field("*", validation_alias="CORS_ALLOWED_ORIGINS")

    model_config = SettingsConfigDict(extra="ignore")

    def origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(",")]
        return [origin for origin in origins if origin] or ["*"]


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    gateway_mode: GatewayMode = Field(GatewayMode.ADMIN, validation_alias="GATEWAY_MODE")
    frontend_base_url: str = Field(
        "/",
        validation_alias="FRONTEND_BASE_URL",
        description="Where browser clients land after the OAuth callback.",
    )
    max_upload_bytes: int = Field(50 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")
    max_files_per_upload: int = Field(10, validation_alias="MAX_FILES_PER_UPLOAD")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AdminSettings",
    "AppSettings",
    "GatewayMode",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "get_settings",
]
