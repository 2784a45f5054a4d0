"""Google Drive client wrapper."""

from __future__ import annotations

import asyncio
import io
from typing import Any, Optional

from google.auth.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_UPLOAD_FIELDS = "id, name, mimeType, size, webViewLink, webContentLink"
_LIST_FIELDS = (
    "nextPageToken, files(id, name, mimeType, size, createdTime, modifiedTime, "
    "webViewLink, webContentLink)"
)
_DETAIL_FIELDS = (
    "id, name, mimeType, size, createdTime, modifiedTime, webViewLink, "
    "webContentLink, parents"
)
_FOLDER_FIELDS = "id, name, mimeType, webViewLink"
_SHARE_FIELDS = "id, name, webViewLink, webContentLink"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 1000


def _file_descriptor(data: dict) -> dict:
    """Reshape Drive file metadata into the gateway's response format."""
    descriptor = {
        "id": data.get("id"),
        "name": data.get("name"),
        "mimeType": data.get("mimeType"),
        "size": data.get("size"),
        "webViewLink": data.get("webViewLink"),
        "webContentLink": data.get("webContentLink"),
    }
    for optional in ("createdTime", "modifiedTime", "parents"):
        if optional in data:
            descriptor[optional] = data[optional]
    return descriptor


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Run Drive v3 operations on behalf of one set of credentials."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        default_folder_id: str | None = None,
        supports_all_drives: bool = False,
    ) -> None:
        self._credentials = credentials
        self._default_folder_id = default_folder_id
        self._supports_all_drives = supports_all_drives

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def _drive(self) -> Any:
        # Called inside each worker thread: a service wraps one httplib2.Http,
        # which must not be shared across threads.
        return build("drive", "v3", credentials=self._credentials, cache_discovery=False)

    def _shared_drive_kwargs(self) -> dict:
        return {"supportsAllDrives": True} if self._supports_all_drives else {}

    async def upload_file(
        self,
        *,
        file_name: str,
        content: bytes,
        mime_type: str,
        folder_id: Optional[str] = None,
    ) -> dict:
        """Upload raw bytes to Drive and return the created file's descriptor."""
        parent = folder_id or self._default_folder_id

        def _execute_upload() -> dict:
            file_metadata: dict[str, Any] = {"name": file_name}
            if parent:
                file_metadata["parents"] = [parent]

            media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
            created = (
                self._drive()
                .files()
                .create(
                    body=file_metadata,
                    media_body=media,
                    fields=_UPLOAD_FIELDS,
                    **self._shared_drive_kwargs(),
                )
                .execute()
            )
            return _file_descriptor(created)

        return await asyncio.to_thread(_execute_upload)

    async def list_files(
        self,
        *,
        folder_id: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_token: Optional[str] = None,
    ) -> dict:
        """List non-trashed files, newest first, optionally within a folder."""
        query = "trashed = false"
        if folder_id:
            query += f" and '{_escape_query_value(folder_id)}' in parents"
        size = max(1, min(page_size, MAX_PAGE_SIZE))

        def _execute_list() -> dict:
            kwargs: dict[str, Any] = {
                "q": query,
                "pageSize": size,
                "fields": _LIST_FIELDS,
                "orderBy": "createdTime desc",
            }
            if page_token:
                kwargs["pageToken"] = page_token
            if self._supports_all_drives:
                kwargs.update(supportsAllDrives=True, includeItemsFromAllDrives=True)
            return self._drive().files().list(**kwargs).execute()

        response = await asyncio.to_thread(_execute_list)
        return {
            "files": [_file_descriptor(item) for item in response.get("files", [])],
            "nextPageToken": response.get("nextPageToken"),
        }

    async def get_file(self, *, file_id: str) -> dict:
        """Fetch metadata for a Drive file."""

        def _execute_get() -> dict:
            return (
                self._drive()
                .files()
                .get(fileId=file_id, fields=_DETAIL_FIELDS, **self._shared_drive_kwargs())
                .execute()
            )

        return _file_descriptor(await asyncio.to_thread(_execute_get))

    async def delete_file(self, *, file_id: str) -> None:
        """Permanently delete a Drive file."""

        def _execute_delete() -> None:
            self._drive().files().delete(
                fileId=file_id, **self._shared_drive_kwargs()
            ).execute()

        await asyncio.to_thread(_execute_delete)

    async def create_folder(self, *, name: str, parent_id: Optional[str] = None) -> dict:
        """Create a folder and return its descriptor."""

        def _execute_create() -> dict:
            file_metadata: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
            if parent_id:
                file_metadata["parents"] = [parent_id]
            return (
                self._drive()
                .files()
                .create(body=file_metadata, fields=_FOLDER_FIELDS, **self._shared_drive_kwargs())
                .execute()
            )

        created = await asyncio.to_thread(_execute_create)
        return {
            "id": created.get("id"),
            "name": created.get("name"),
            "mimeType": created.get("mimeType"),
            "webViewLink": created.get("webViewLink"),
        }

    async def share_file(self, *, file_id: str, role: str = "reader") -> dict:
        """Grant ``role`` to anyone with the link and return the refreshed links."""

        def _execute_share() -> dict:
            drive = self._drive()
            drive.permissions().create(
                fileId=file_id,
                body={"role": role, "type": "anyone"},
                **self._shared_drive_kwargs(),
            ).execute()
            return (
                drive.files()
                .get(fileId=file_id, fields=_SHARE_FIELDS, **self._shared_drive_kwargs())
                .execute()
            )

        shared = await asyncio.to_thread(_execute_share)
        return {
            "id": shared.get("id"),
            "name": shared.get("name"),
            "webViewLink": shared.get("webViewLink"),
            "webContentLink": shared.get("webContentLink"),
        }


__all__ = ["DEFAULT_PAGE_SIZE", "FOLDER_MIME_TYPE", "GoogleDriveClient", "MAX_PAGE_SIZE"]
