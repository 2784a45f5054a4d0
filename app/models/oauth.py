"""
Domain models for admin OAuth token persistence.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdminCredential(BaseModel):
    """The single admin identity and token set the gateway acts on behalf of."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(
        ..., alias="refreshToken", description="Long-lived token issued by Google."
    )
    access_token: Optional[str] = Field(None, alias="accessToken")
    expiry_date: Optional[datetime] = Field(None, alias="expiryDate")
    email: Optional[str] = None
    name: Optional[str] = None
    setup_date: Optional[datetime] = Field(None, alias="setupDate")

    def to_record(self) -> dict:
        """Serialize using the persisted camelCase layout."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["AdminCredential"]
