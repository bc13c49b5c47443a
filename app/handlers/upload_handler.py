"""Product upload endpoint.

Commits a product image and its JSON record to the configured GitHub
repository. All validation happens before the first GitHub call.
"""
from __future__ import annotations

import hmac
import json
import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from app.config import Settings, get_settings
from app.models import PayloadError, ProductUpload, UploadResponse
from app.services.github import GitHubAPIError, GitHubContentsClient
from app.services.publisher import ImageDecodeError, publish_product

router = APIRouter()
logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload"
ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, X-Upload-Secret, Authorization"

ClientFactory = Callable[[Settings], GitHubContentsClient]


class UploadError(HTTPException):
    """Terminal upload failure rendered as ``{"error": ..., "message": ...}``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        *,
        message: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.message = message


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def cors_headers(settings: Settings, *, preflight: bool = False) -> dict[str, str]:
    headers = {"Access-Control-Allow-Origin": settings.cors_allow_origin}
    if preflight:
        headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    return headers


def verify_upload_secret(settings: Settings, provided: str | None) -> None:
    if not settings.upload_secret:
        return
    if not hmac.compare_digest((provided or "").encode(), settings.upload_secret.encode()):
        logger.warning("Rejected upload with missing or bad upload secret")
        raise UploadError(401, "Unauthorized (bad upload secret)", headers=cors_headers(settings))


def verify_github_config(settings: Settings) -> None:
    headers = cors_headers(settings)
    if not settings.is_github_configured():
        logger.error("GITHUB_TOKEN or GITHUB_REPO not set - rejecting upload")
        raise UploadError(500, "Server misconfigured: set GITHUB_TOKEN and GITHUB_REPO", headers=headers)
    try:
        settings.repo_coordinates()
    except ValueError as exc:
        logger.error("GITHUB_REPO is not in owner/repo form")
        raise UploadError(500, "Upload failed", message=str(exc), headers=headers) from exc


async def read_payload(request: Request, settings: Settings) -> ProductUpload:
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body) if raw_body.strip() else {}
    except ValueError as exc:
        raise UploadError(400, "Invalid JSON body", headers=cors_headers(settings)) from exc
    try:
        return ProductUpload.from_payload(payload)
    except PayloadError as exc:
        logger.warning("Rejected upload payload: %s", exc)
        raise UploadError(400, str(exc), headers=cors_headers(settings)) from exc


def method_not_allowed(settings: Settings) -> UploadError:
    headers = cors_headers(settings, preflight=True)
    headers["Allow"] = ALLOWED_METHODS
    return UploadError(405, "Method not allowed", headers=headers)


def get_client_factory() -> ClientFactory:
    return GitHubContentsClient.from_settings


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.options(UPLOAD_PATH)
async def upload_preflight(settings: Settings = Depends(get_settings)) -> Response:
    return Response(status_code=204, headers=cors_headers(settings, preflight=True))


@router.post(UPLOAD_PATH, response_model=UploadResponse)
async def upload_product(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    client_factory: ClientFactory = Depends(get_client_factory),
    x_upload_secret: str | None = Header(None, alias="X-Upload-Secret"),
) -> UploadResponse:
    verify_upload_secret(settings, x_upload_secret)
    verify_github_config(settings)
    upload = await read_payload(request, settings)

    headers = cors_headers(settings)
    try:
        async with client_factory(settings) as client:
            result = await publish_product(client, upload, settings)
    except ImageDecodeError as exc:
        raise UploadError(400, str(exc), headers=headers) from exc
    except GitHubAPIError as exc:
        logger.error("upload error for %s: %s", upload.product_id, exc)
        message = exc.response_json if exc.response_json is not None else str(exc)
        raise UploadError(500, "Upload failed", message=message, headers=headers) from exc
    except Exception as exc:
        logger.exception("upload error for %s: %s", upload.product_id, exc)
        raise UploadError(500, "Upload failed", message=str(exc) or "Upload failed", headers=headers) from exc

    response.headers.update(headers)
    logger.info("Published product %s", upload.product_id)
    return UploadResponse(result=result)
