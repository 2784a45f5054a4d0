"""Expose constructed client wrappers."""

from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .google_drive import GoogleDriveClient
from .token_store import EnvironmentTokenStore, FileTokenStore, TokenSource

__all__ = [
    "EnvironmentTokenStore",
    "FileTokenStore",
    "GoogleDriveClient",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "TokenSource",
]
