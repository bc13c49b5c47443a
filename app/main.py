from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.handlers import upload_handler
from app.handlers.upload_handler import UPLOAD_PATH, UploadError, method_not_allowed


def configure_logging(level_name: str) -> logging.Logger:
    """Send all logs to stdout; the hosting platform collects them from there."""

    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)
    return root_logger


configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Product Upload API")

app.include_router(upload_handler.router)


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    body = {"error": exc.detail}
    if exc.message is not None:
        body["message"] = exc.message
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def routing_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Any method other than POST/OPTIONS on the upload path gets the upload 405."""

    if exc.status_code == 405 and request.url.path == UPLOAD_PATH:
        # exception handlers run outside dependency injection; honour overrides
        settings_provider = request.app.dependency_overrides.get(get_settings, get_settings)
        return await upload_error_handler(request, method_not_allowed(settings_provider()))
    return await http_exception_handler(request, exc)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
