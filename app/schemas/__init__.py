"""Public schema exports."""

from .auth import DisconnectPayload, OAuthCodePayload, RefreshTokenPayload
from .drive import CreateFolderRequest, ShareFileRequest

__all__ = [
    "CreateFolderRequest",
    "DisconnectPayload",
    "OAuthCodePayload",
    "RefreshTokenPayload",
    "ShareFileRequest",
]
