"""
FastAPI routes for the Drive gateway.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import RedirectResponse

from app.clients.google_auth import (
    OAuthStateError,
    OAuthTokenExchangeError,
    OAuthUserInfoError,
)
from app.core.config import AppSettings, GatewayMode
from app.dependencies import (
    get_app_settings,
    get_credential_manager,
    get_drive_access,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_optional_credential_manager,
    require_gateway_mode,
)
from app.services import CredentialManager, DriveAccess
from app.services.drive_access import extract_bearer_token
from app.schemas import (
    CreateFolderRequest,
    DisconnectPayload,
    OAuthCodePayload,
    RefreshTokenPayload,
    ShareFileRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)

OAuthModes = Depends(require_gateway_mode(GatewayMode.USER_OAUTH, GatewayMode.ADMIN))
UserOAuthMode = Depends(require_gateway_mode(GatewayMode.USER_OAUTH))
AdminMode = Depends(require_gateway_mode(GatewayMode.ADMIN))


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


def _frontend_redirect(settings: AppSettings, **params: Any) -> RedirectResponse:
    base = settings.frontend_base_url or "/"
    query = urlencode({key: value for key, value in params.items() if value is not None})
    separator = "&" if "?" in base else "?"
    url = f"{base}{separator}{query}" if query else base
    return RedirectResponse(url=url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


def _validate_state(state_encoder: Any, state: str, settings: AppSettings) -> dict:
    """Decode a signed OAuth state token and enforce its lifetime."""
    state_data = state_encoder.decode(state)

    issued_at_raw = state_data.get("issued_at")
    if not issued_at_raw:
        raise OAuthStateError("Missing issued_at in state token.")
    try:
        issued_at = datetime.fromisoformat(issued_at_raw)
    except ValueError as exc:
        raise OAuthStateError("Invalid issued_at in state token.") from exc
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)

    if datetime.now(timezone.utc) - issued_at > timedelta(seconds=settings.oauth.state_ttl_seconds):
        raise OAuthStateError("OAuth state token has expired.")

    if state_data.get("mode") != settings.gateway_mode.value:
        raise OAuthStateError("OAuth state was issued for a different gateway mode.")
    return state_data


# ============== STATUS ENDPOINTS ==============


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
) -> dict:
    """Health endpoint reporting the gateway mode and whether it can reach Drive."""
    return {
        "success": True,
        "message": "Google Drive gateway is running",
        "mode": settings.gateway_mode.value,
        "configured": drive_access.is_configured(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/auth/status", status_code=HTTPStatus.OK, dependencies=[AdminMode])
async def admin_status(
    manager: Annotated[CredentialManager, Depends(get_credential_manager)],
) -> dict:
    """Report whether an admin account is connected, without touching the network."""
    admin = manager.admin
    payload: dict[str, Any] = {
        "success": True,
        "configured": manager.is_configured(),
        "source": manager.source.value,
    }
    if admin is not None:
        payload["admin"] = {
            "email": admin.email,
            "name": admin.name,
            "setupDate": admin.setup_date.isoformat() if admin.setup_date else None,
        }
    return payload


# ============== AUTH ENDPOINTS ==============


@router.get("/auth/url", status_code=HTTPStatus.OK)
async def get_authorization_url(
    request: Request,
    settings: Annotated[AppSettings, OAuthModes],
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Google consent screen.",
    ),
):
    """Generate a Google consent URL carrying a signed state token."""
    state = state_encoder.encode(
        {
            "nonce": uuid.uuid4().hex,
            "mode": settings.gateway_mode.value,
            "issued_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    authorization_url = oauth_client.build_authorization_url(state=state)

    if redirect or _wants_html(request):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return {"success": True, "authUrl": authorization_url, "state": state}


@router.get("/auth/callback", status_code=HTTPStatus.OK)
async def handle_oauth_callback(
    request: Request,
    settings: Annotated[AppSettings, OAuthModes],
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    manager: Annotated[Optional[CredentialManager], Depends(get_optional_credential_manager)],
    code: Optional[str] = Query(default=None, description="Authorization code returned by Google."),
    state: Optional[str] = Query(default=None, description="OAuth state token."),
    error: Optional[str] = Query(default=None, description="Error reported by Google."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
):
    """Complete the OAuth exchange for either the admin setup or a user sign-in."""
    browser = redirect or _wants_html(request)

    if error or not code or not state:
        message = error or ("No authorization code provided" if not code else "Missing OAuth state.")
        if browser:
            return _frontend_redirect(settings, error=message)
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=message)

    try:
        _validate_state(state_encoder, state, settings)
        if settings.gateway_mode is GatewayMode.ADMIN:
            if manager is None:
                raise HTTPException(
                    status_code=HTTPStatus.SERVICE_UNAVAILABLE,
                    detail="Admin credential manager is not running.",
                )
            record = await manager.complete_setup(code)
            if browser:
                return _frontend_redirect(settings, setup="success", email=record.email)
            return {
                "success": True,
                "message": "Admin account connected",
                "admin": {
                    "email": record.email,
                    "name": record.name,
                    "setupDate": record.setup_date.isoformat() if record.setup_date else None,
                },
                # Shown once so operators can move it into ADMIN_REFRESH_TOKEN.
                "refreshToken": record.refresh_token,
            }

        access_token, _, _ = await oauth_client.exchange_authorization_code(code)
        user = await oauth_client.fetch_user_info(access_token)
    except (OAuthStateError, OAuthTokenExchangeError, OAuthUserInfoError) as exc:
        logger.warning("OAuth callback failed: %s", exc)
        if browser:
            return _frontend_redirect(settings, error=str(exc))
        raise

    if browser:
        return _frontend_redirect(settings, access_token=access_token, email=user.get("email"))
    return {"success": True, "accessToken": access_token, "user": user}


@router.post("/auth/token", status_code=HTTPStatus.OK, dependencies=[UserOAuthMode])
async def exchange_token(
    payload: OAuthCodePayload,
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
) -> dict:
    """Exchange an authorization code for tokens on behalf of an API client."""
    access_token, refresh_token, expires_in = await oauth_client.exchange_authorization_code(
        payload.code
    )
    user = await oauth_client.fetch_user_info(access_token)
    return {
        "success": True,
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "expiresIn": expires_in,
        "user": user,
    }


@router.post("/auth/refresh", status_code=HTTPStatus.OK, dependencies=[UserOAuthMode])
async def refresh_access_token(
    payload: RefreshTokenPayload,
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
) -> dict:
    """Trade a caller-held refresh token for a new access token."""
    try:
        access_token, expires_in = await oauth_client.refresh_token(payload.refresh_token)
    except OAuthTokenExchangeError as exc:
        logger.warning("User token refresh failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Failed to refresh token; re-authentication required.",
        ) from exc
    return {"success": True, "accessToken": access_token, "expiresIn": expires_in}


@router.get("/auth/me", status_code=HTTPStatus.OK, dependencies=[UserOAuthMode])
async def current_user(
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Return the identity behind the caller's bearer token."""
    token = extract_bearer_token(authorization)
    user = await oauth_client.fetch_user_info(token)
    return {"success": True, "user": user}


@router.post("/admin/disconnect", status_code=HTTPStatus.OK, dependencies=[AdminMode])
async def disconnect_admin(
    manager: Annotated[CredentialManager, Depends(get_credential_manager)],
    payload: Optional[DisconnectPayload] = None,
    x_admin_key: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Forget the connected admin account."""
    provided_key = x_admin_key or (payload.admin_key if payload else None)
    manager.disconnect(provided_key)
    return {"success": True, "message": "Admin account disconnected"}


# ============== FILE ENDPOINTS ==============


async def _read_upload(upload: UploadFile, settings: AppSettings) -> bytes:
    content = await upload.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
            detail=f"File {upload.filename!r} exceeds the {settings.max_upload_bytes} byte limit.",
        )
    return content


@router.post("/upload", status_code=HTTPStatus.OK)
async def upload_file(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    file: Optional[UploadFile] = File(default=None),
    file_name: Optional[str] = Form(default=None, alias="fileName"),
    folder_id: Optional[str] = Form(default=None, alias="folderId"),
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Upload a single file to Drive."""
    if file is None:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="No file provided")

    content = await _read_upload(file, settings)
    drive = await drive_access.client_for(authorization)
    uploaded = await drive.upload_file(
        file_name=file_name or file.filename or "untitled",
        content=content,
        mime_type=file.content_type or "application/octet-stream",
        folder_id=folder_id,
    )
    logger.info("Uploaded %s (%s)", uploaded.get("name"), uploaded.get("id"))
    return {"success": True, "file": uploaded}


@router.post("/upload/multiple", status_code=HTTPStatus.OK)
async def upload_multiple_files(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    files: Optional[list[UploadFile]] = File(default=None),
    folder_id: Optional[str] = Form(default=None, alias="folderId"),
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Upload several files to Drive concurrently."""
    if not files:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="No files provided")
    if len(files) > settings.max_files_per_upload:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"At most {settings.max_files_per_upload} files may be uploaded at once.",
        )

    contents = [await _read_upload(upload, settings) for upload in files]
    drive = await drive_access.client_for(authorization)
    uploaded = await asyncio.gather(
        *(
            drive.upload_file(
                file_name=upload.filename or "untitled",
                content=content,
                mime_type=upload.content_type or "application/octet-stream",
                folder_id=folder_id,
            )
            for upload, content in zip(files, contents)
        )
    )
    return {"success": True, "files": list(uploaded)}


@router.get("/files", status_code=HTTPStatus.OK)
async def list_files(
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    folder_id: Optional[str] = Query(default=None, alias="folderId"),
    page_size: int = Query(default=20, alias="pageSize", ge=1, le=1000),
    page_token: Optional[str] = Query(default=None, alias="pageToken"),
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """List files, newest first."""
    drive = await drive_access.client_for(authorization)
    page = await drive.list_files(folder_id=folder_id, page_size=page_size, page_token=page_token)
    return {"success": True, **page}


@router.get("/files/{file_id}", status_code=HTTPStatus.OK)
async def get_file(
    file_id: str,
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Fetch metadata for a single file."""
    drive = await drive_access.client_for(authorization)
    return {"success": True, "file": await drive.get_file(file_id=file_id)}


@router.delete("/files/{file_id}", status_code=HTTPStatus.OK)
async def delete_file(
    file_id: str,
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Delete a file."""
    drive = await drive_access.client_for(authorization)
    await drive.delete_file(file_id=file_id)
    logger.info("Deleted Drive file %s", file_id)
    return {"success": True, "message": "File deleted successfully"}


@router.post("/folders", status_code=HTTPStatus.OK)
async def create_folder(
    payload: CreateFolderRequest,
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Create a folder, optionally inside another folder."""
    drive = await drive_access.client_for(authorization)
    folder = await drive.create_folder(
        name=payload.folder_name, parent_id=payload.parent_folder_id
    )
    return {"success": True, "folder": folder}


@router.post("/files/{file_id}/share", status_code=HTTPStatus.OK)
async def share_file(
    file_id: str,
    drive_access: Annotated[DriveAccess, Depends(get_drive_access)],
    payload: Optional[ShareFileRequest] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Make a file readable (or writable) by anyone with the link."""
    role = payload.role if payload else "reader"
    drive = await drive_access.client_for(authorization)
    shared = await drive.share_file(file_id=file_id, role=role)
    return {"success": True, "file": shared, "message": "File shared successfully"}


__all__ = ["router"]
