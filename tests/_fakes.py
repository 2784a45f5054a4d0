"""Test doubles shared across the suite."""

from __future__ import annotations

from typing import Any, Optional

from app import dependencies
from app.clients.google_auth import OAuthTokenExchangeError
from app.clients.token_store import TokenPersistenceError, TokenSource
from app.core.config import GatewayMode, get_settings
from app.main import create_app
from app.models.oauth import AdminCredential
from app.services import CredentialManager


class DummyOAuthClient:
    client_id = "client"
    client_secret = "secret"
    scopes = ["https://www.googleapis.com/auth/drive.file"]

    def __init__(self) -> None:
        self.states: list[str] = []
        self.codes: list[str] = []
        self.refresh_calls: list[str] = []
        self.refresh_error: Optional[Exception] = None
        self.issue_refresh_token = True
        self._counter = 0

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://oauth.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> tuple[str, Optional[str], int]:
        self.codes.append(code)
        refresh_token = "refresh-token" if self.issue_refresh_token else None
        return "access-token", refresh_token, 3600

    async def refresh_token(self, refresh_token: str) -> tuple[str, int]:
        self.refresh_calls.append(refresh_token)
        if self.refresh_error is not None:
            raise self.refresh_error
        self._counter += 1
        return f"access-{self._counter}", 3600

    async def fetch_user_info(self, access_token: str) -> dict:
        return {
            "id": "42",
            "email": "admin@example.com",
            "name": "Drive Admin",
            "picture": None,
        }


class RevokedOAuthClient(DummyOAuthClient):
    def __init__(self) -> None:
        super().__init__()
        self.refresh_error = OAuthTokenExchangeError("invalid_grant")


class InMemoryTokenStore:
    """File-sourced store kept in memory, with switchable write/delete failures."""

    source = TokenSource.FILE

    def __init__(self, record: AdminCredential | None = None) -> None:
        self.record = record
        self.writes: list[AdminCredential] = []
        self.deletes = 0
        self.fail_writes = False
        self.fail_deletes = False

    def read(self) -> AdminCredential | None:
        return self.record.model_copy() if self.record else None

    def write(self, record: AdminCredential) -> None:
        if self.fail_writes:
            raise TokenPersistenceError("disk full")
        self.record = record.model_copy()
        self.writes.append(self.record)

    def delete(self) -> None:
        self.deletes += 1
        if self.fail_deletes:
            raise TokenPersistenceError("read-only filesystem")
        self.record = None


class FakeDriveClient:
    """Records Drive calls instead of reaching Google."""

    def __init__(self, credentials: Any = None) -> None:
        self.credentials = credentials
        self.calls: list[tuple[str, dict]] = []
        self.errors: dict[str, Exception] = {}

    def _record(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.errors:
            raise self.errors[operation]

    async def upload_file(self, *, file_name, content, mime_type, folder_id=None) -> dict:
        self._record("upload_file", file_name=file_name, content=content, mime_type=mime_type, folder_id=folder_id)
        return {
            "id": f"file-{len(self.calls)}",
            "name": file_name,
            "mimeType": mime_type,
            "size": str(len(content)),
            "webViewLink": f"https://drive.google.com/file/d/file-{len(self.calls)}/view",
            "webContentLink": None,
        }

    async def list_files(self, *, folder_id=None, page_size=20, page_token=None) -> dict:
        self._record("list_files", folder_id=folder_id, page_size=page_size, page_token=page_token)
        return {"files": [{"id": "file-1", "name": "report.pdf"}], "nextPageToken": "next"}

    async def get_file(self, *, file_id) -> dict:
        self._record("get_file", file_id=file_id)
        return {"id": file_id, "name": "report.pdf", "mimeType": "application/pdf"}

    async def delete_file(self, *, file_id) -> None:
        self._record("delete_file", file_id=file_id)

    async def create_folder(self, *, name, parent_id=None) -> dict:
        self._record("create_folder", name=name, parent_id=parent_id)
        return {"id": "folder-1", "name": name, "mimeType": "application/vnd.google-apps.folder"}

    async def share_file(self, *, file_id, role="reader") -> dict:
        self._record("share_file", file_id=file_id, role=role)
        return {"id": file_id, "name": "report.pdf", "webViewLink": "https://drive.google.com/x"}


class FakeDriveAccess:
    """Drive access strategy handing out one shared fake client."""

    def __init__(self, mode: GatewayMode = GatewayMode.SERVICE_ACCOUNT) -> None:
        self.mode = mode
        self.client = FakeDriveClient()
        self.authorizations: list[Optional[str]] = []

    def is_configured(self) -> bool:
        return True

    async def client_for(self, authorization: Optional[str]) -> FakeDriveClient:
        self.authorizations.append(authorization)
        return self.client


def admin_record() -> AdminCredential:
    return AdminCredential(refresh_token="1//stored-refresh", email="admin@example.com", name="Drive Admin")


def build_manager(
    record: AdminCredential | None = None,
    *,
    oauth_client: DummyOAuthClient | None = None,
    disconnect_key: str | None = None,
) -> CredentialManager:
    manager = CredentialManager(
        store=InMemoryTokenStore(record),
        oauth_client=oauth_client or DummyOAuthClient(),
        disconnect_key=disconnect_key,
        drive_client_factory=FakeDriveClient,
    )
    manager.load_admin()
    return manager


def build_app(mode: GatewayMode, *, manager: CredentialManager | None = None, **overrides: Any):
    """Create an isolated application for ``mode`` with its settings pinned."""
    settings = get_settings().model_copy(update={"gateway_mode": mode, **overrides})
    application = create_app(settings, credential_manager=manager)
    application.dependency_overrides[dependencies.get_app_settings] = lambda: settings
    return application
