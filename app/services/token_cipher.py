"""
Encryption at rest for the admin token file.

When ``TOKEN_ENCRYPTION_SECRET`` is configured, :class:`FileTokenStore` writes
the serialized :class:`AdminCredential` as a single Fernet token instead of
plain JSON. The key is derived from the secret, so rotating the secret makes
an existing file unreadable and the gateway starts unconfigured.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Seal and open the admin record persisted by the file token store."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, record_json: str) -> str:
        """Return the file contents for ``record_json``."""
        return self._fernet.encrypt(record_json.encode("utf-8")).decode("utf-8")

    def decrypt(self, file_contents: str) -> str:
        """
        Recover the record JSON from the token file.

        Raises ``ValueError`` for a file written under another secret or a
        tampered file; the store treats both as an absent admin record.
        """
        try:
            record_json = self._fernet.decrypt(file_contents.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError("Failed to decrypt admin token file.") from exc
        return record_json.decode("utf-8")


def build_token_cipher(secret: Optional[str]) -> Optional[TokenCipherService]:
    """Return a cipher when a secret is configured; without one the file stays plain JSON."""
    if not secret:
        return None
    return TokenCipherService(secret=secret)


__all__ = ["TokenCipherService", "build_token_cipher"]
