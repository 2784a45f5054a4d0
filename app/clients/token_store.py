"""Persistence backends for the admin credential record."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol

from pydantic import ValidationError

from app.models.oauth import AdminCredential

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@environment"
DEFAULT_ADMIN_NAME = "Admin"


class TokenSource(str, Enum):
    """Where the admin credential comes from."""

    ENVIRONMENT = "environment"
    FILE = "file"


class TokenPersistenceError(Exception):
    """Raised when the token artifact cannot be written or removed."""


class TokenStore(Protocol):
    source: TokenSource

    def read(self) -> Optional[AdminCredential]: ...

    def write(self, record: AdminCredential) -> None: ...

    def delete(self) -> None: ...


class EnvironmentTokenStore:
    """Read-only store backed by a refresh token from deployment configuration."""

    source = TokenSource.ENVIRONMENT

    def __init__(
        self,
        *,
        refresh_token: str,
        email: str | None = None,
        name: str | None = None,
    ) -> None:
        if not refresh_token:
            raise ValueError("An environment token store needs a refresh token.")
        self._refresh_token = refresh_token
        self._email = email or DEFAULT_ADMIN_EMAIL
        self._name = name or DEFAULT_ADMIN_NAME

    def read(self) -> Optional[AdminCredential]:
        return AdminCredential(
            refresh_token=self._refresh_token,
            email=self._email,
            name=self._name,
        )

    def write(self, record: AdminCredential) -> None:
        # Deployment configuration is immutable for the process lifetime.
        logger.debug("Environment-sourced admin token; skipping persistence.")

    def delete(self) -> None:
        logger.debug("Environment-sourced admin token; nothing to delete.")


class FileTokenStore:
    """Single-record JSON file store, optionally encrypted at rest."""

    source = TokenSource.FILE

    def __init__(
        self, path: str | Path, *, cipher: "TokenCipherService | None" = None
    ) -> None:
        self._path = Path(path)
        self._cipher = cipher

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[AdminCredential]:
        if not self._path.exists():
            logger.info("No admin token file at %s.", self._path)
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
            if self._cipher is not None:
                raw = self._cipher.decrypt(raw.strip())
            record = AdminCredential.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable admin token file %s: %s", self._path, exc)
            return None
        if not record.refresh_token:
            logger.warning("Admin token file %s has an empty refresh token.", self._path)
            return None
        return record

    def write(self, record: AdminCredential) -> None:
        payload = json.dumps(record.to_record(), indent=2)
        if self._cipher is not None:
            payload = self._cipher.encrypt(payload)
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TokenPersistenceError(
                f"Failed to write admin token file {self._path}: {exc}"
            ) from exc

    def delete(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise TokenPersistenceError(
                f"Failed to delete admin token file {self._path}: {exc}"
            ) from exc


def select_token_store(
    *,
    refresh_token: str | None,
    email: str | None,
    name: str | None,
    token_file: str | Path,
    cipher: "TokenCipherService | None" = None,
) -> TokenStore:
    """Pick the backend once at startup; a configured refresh token always wins."""
    if refresh_token:
        return EnvironmentTokenStore(refresh_token=refresh_token, email=email, name=name)
    return FileTokenStore(token_file, cipher=cipher)


__all__ = [
    "DEFAULT_ADMIN_EMAIL",
    "DEFAULT_ADMIN_NAME",
    "EnvironmentTokenStore",
    "FileTokenStore",
    "TokenPersistenceError",
    "TokenSource",
    "TokenStore",
    "select_token_store",
]
