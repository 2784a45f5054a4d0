from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import (
        DummyOAuthClient,
        FakeDriveAccess,
        RevokedOAuthClient,
        admin_record,
        build_app,
        build_manager,
    )
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import (  # type: ignore
        DummyOAuthClient,
        FakeDriveAccess,
        RevokedOAuthClient,
        admin_record,
        build_app,
        build_manager,
    )

import httplib2
import httpx
import pytest
from googleapiclient.errors import HttpError

from app import dependencies
from app.core.config import GatewayMode

pytestmark = pytest.mark.anyio


def _client(application) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=application), base_url="http://testserver"
    )


def _http_error(status: int, message: str) -> HttpError:
    content = ('{"error": {"message": "%s"}}' % message).encode("utf-8")
    return HttpError(httplib2.Response({"status": str(status)}), content)


@pytest.fixture()
def service_account_app():
    application = build_app(GatewayMode.SERVICE_ACCOUNT)
    drive_access = FakeDriveAccess()
    application.dependency_overrides[dependencies.get_drive_access] = lambda: drive_access
    yield application, drive_access
    application.dependency_overrides.clear()


async def test_health_reports_mode(service_account_app):
    application, _ = service_account_app
    async with _client(application) as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["mode"] == "service_account"
    assert data["configured"] is True


async def test_upload_single_file(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        response = await client.post(
            "/api/upload",
            files={"file": ("report.pdf", b"%PDF-1.4 data", "application/pdf")},
            data={"fileName": "renamed.pdf", "folderId": "folder-9"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["file"]["name"] == "renamed.pdf"
    name, kwargs = drive_access.client.calls[0]
    assert name == "upload_file"
    assert kwargs["content"] == b"%PDF-1.4 data"
    assert kwargs["mime_type"] == "application/pdf"
    assert kwargs["folder_id"] == "folder-9"


async def test_upload_without_file_is_rejected(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        response = await client.post("/api/upload", data={"fileName": "x"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No file provided"}
    assert drive_access.client.calls == []


async def test_upload_over_limit_is_rejected():
    application = build_app(GatewayMode.SERVICE_ACCOUNT, max_upload_bytes=4)
    drive_access = FakeDriveAccess()
    application.dependency_overrides[dependencies.get_drive_access] = lambda: drive_access

    async with _client(application) as client:
        response = await client.post(
            "/api/upload", files={"file": ("big.bin", b"0123456789", "application/octet-stream")}
        )

    assert response.status_code == 413
    assert response.json()["success"] is False
    assert drive_access.client.calls == []


async def test_upload_multiple_files(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        response = await client.post(
            "/api/upload/multiple",
            files=[
                ("files", ("a.txt", b"alpha", "text/plain")),
                ("files", ("b.txt", b"beta", "text/plain")),
            ],
        )

    assert response.status_code == 200
    data = response.json()
    assert [item["name"] for item in data["files"]] == ["a.txt", "b.txt"]
    assert len(drive_access.authorizations) == 1


async def test_upload_multiple_requires_files(service_account_app):
    application, _ = service_account_app
    async with _client(application) as client:
        response = await client.post("/api/upload/multiple", data={"folderId": "f"})

    assert response.status_code == 400
    assert response.json()["error"] == "No files provided"


async def test_list_files_passes_pagination(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        response = await client.get(
            "/api/files", params={"folderId": "folder-1", "pageSize": 5, "pageToken": "tok"}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["nextPageToken"] == "next"
    assert drive_access.client.calls == [
        ("list_files", {"folder_id": "folder-1", "page_size": 5, "page_token": "tok"})
    ]


async def test_list_files_rejects_bad_page_size(service_account_app):
    application, _ = service_account_app
    async with _client(application) as client:
        response = await client.get("/api/files", params={"pageSize": 0})

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_get_and_delete_file(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        get_response = await client.get("/api/files/abc")
        delete_response = await client.delete("/api/files/abc")

    assert get_response.json()["file"]["id"] == "abc"
    assert delete_response.json() == {"success": True, "message": "File deleted successfully"}
    assert [name for name, _ in drive_access.client.calls] == ["get_file", "delete_file"]


async def test_create_folder_requires_name(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        missing = await client.post("/api/folders", json={})
        created = await client.post(
            "/api/folders", json={"folderName": "Reports", "parentFolderId": "root-1"}
        )

    assert missing.status_code == 400
    assert missing.json()["success"] is False
    assert created.status_code == 200
    assert created.json()["folder"]["name"] == "Reports"
    assert drive_access.client.calls == [
        ("create_folder", {"name": "Reports", "parent_id": "root-1"})
    ]


async def test_share_defaults_to_reader(service_account_app):
    application, drive_access = service_account_app
    async with _client(application) as client:
        default_role = await client.post("/api/files/abc/share")
        writer = await client.post("/api/files/abc/share", json={"role": "writer"})
        invalid = await client.post("/api/files/abc/share", json={"role": "owner"})

    assert default_role.status_code == 200
    assert default_role.json()["message"] == "File shared successfully"
    assert writer.status_code == 200
    assert invalid.status_code == 400
    assert [kwargs["role"] for _, kwargs in drive_access.client.calls] == ["reader", "writer"]


@pytest.mark.parametrize(
    ("upstream", "expected_status", "expected_error"),
    [
        (401, 401, "Invalid or expired access token"),
        (404, 404, "File not found: abc."),
        (500, 500, "Backend Error"),
    ],
)
async def test_drive_errors_are_enveloped(
    service_account_app, upstream, expected_status, expected_error
):
    application, drive_access = service_account_app
    drive_access.client.errors["get_file"] = _http_error(upstream, expected_error)

    async with _client(application) as client:
        response = await client.get("/api/files/abc")

    assert response.status_code == expected_status
    assert response.json() == {"success": False, "error": expected_error}


async def test_service_account_without_key_is_unavailable():
    application = build_app(GatewayMode.SERVICE_ACCOUNT)

    async with _client(application) as client:
        health = await client.get("/api/health")
        response = await client.get("/api/files")

    assert health.json()["configured"] is False
    assert response.status_code == 503
    assert response.json()["success"] is False


async def test_user_mode_requires_bearer_token():
    application = build_app(GatewayMode.USER_OAUTH)

    async with _client(application) as client:
        response = await client.get("/api/files")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Authorization header with Bearer token is required",
    }


async def test_user_mode_forwards_bearer_token():
    application = build_app(GatewayMode.USER_OAUTH)
    drive_access = FakeDriveAccess(GatewayMode.USER_OAUTH)
    application.dependency_overrides[dependencies.get_drive_access] = lambda: drive_access

    async with _client(application) as client:
        response = await client.get("/api/files", headers={"Authorization": "Bearer ya29.user"})

    assert response.status_code == 200
    assert drive_access.authorizations == ["Bearer ya29.user"]


async def test_admin_mode_unconfigured_returns_503():
    oauth_client = DummyOAuthClient()
    application = build_app(GatewayMode.ADMIN, manager=build_manager(oauth_client=oauth_client))

    async with _client(application) as client:
        response = await client.get("/api/files")

    assert response.status_code == 503
    assert response.json()["success"] is False
    assert oauth_client.refresh_calls == []


async def test_admin_mode_refreshes_once_per_request():
    oauth_client = DummyOAuthClient()
    manager = build_manager(admin_record(), oauth_client=oauth_client)
    application = build_app(GatewayMode.ADMIN, manager=manager)

    async with _client(application) as client:
        first = await client.get("/api/files")
        second = await client.post(
            "/api/upload", files={"file": ("a.txt", b"alpha", "text/plain")}
        )

    assert first.status_code == 200
    assert second.status_code == 200
    assert oauth_client.refresh_calls == ["1//stored-refresh", "1//stored-refresh"]
    assert manager.admin is not None
    assert manager.admin.access_token == "access-2"


async def test_admin_mode_refresh_failure_keeps_configuration():
    manager = build_manager(admin_record(), oauth_client=RevokedOAuthClient())
    application = build_app(GatewayMode.ADMIN, manager=manager)

    async with _client(application) as client:
        response = await client.get("/api/files")
        status = await client.get("/api/auth/status")

    assert response.status_code == 401
    assert "re-authentication required" in response.json()["error"]
    assert status.json()["configured"] is True
    assert manager.admin is not None
    assert manager.admin.refresh_token == "1//stored-refresh"
