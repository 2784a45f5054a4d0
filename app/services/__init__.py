"""Service layer exports."""

from .credential_manager import (
    AdminNotConfiguredError,
    AdminUnauthorizedError,
    CredentialManager,
    TokenRefreshError,
)
from .drive_access import (
    AdminDriveAccess,
    DriveAccess,
    DriveAccessError,
    MissingBearerTokenError,
    ServiceAccountDriveAccess,
    UserTokenDriveAccess,
)
from .token_cipher import TokenCipherService, build_token_cipher

__all__ = [
    "AdminDriveAccess",
    "AdminNotConfiguredError",
    "AdminUnauthorizedError",
    "CredentialManager",
    "DriveAccess",
    "DriveAccessError",
    "MissingBearerTokenError",
    "ServiceAccountDriveAccess",
    "TokenCipherService",
    "TokenRefreshError",
    "UserTokenDriveAccess",
    "build_token_cipher",
]
