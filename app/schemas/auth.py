"""Schemas related to OAuth flows and admin actions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthCodePayload(BaseModel):
    """Payload carrying an authorization code to exchange for tokens."""

    code: str = Field(..., min_length=1, description="Authorization code returned by Google OAuth.")


class RefreshTokenPayload(BaseModel):
    """Payload carrying a caller-held refresh token."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, alias="refreshToken")


class DisconnectPayload(BaseModel):
    """Optional body for the admin disconnect action."""

    model_config = ConfigDict(populate_by_name=True)

    admin_key: Optional[str] = Field(None, alias="adminKey")


__all__ = ["DisconnectPayload", "OAuthCodePayload", "RefreshTokenPayload"]
