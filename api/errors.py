"""
Error envelope for the cMindX API.

Every failure leaves the service as ``{"ok": false, "error": "<message>"}``
with a matching HTTP status. Exception details are logged, never returned.
"""

import logging
from typing import Dict, Optional

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.store import StoreError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error with a client-facing message and HTTP status"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message}, headers=headers)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods and other framework-raised HTTP errors."""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({
        str(error["loc"][-1])
        for error in exc.errors()
        if error.get("loc") and error["loc"][0] == "body" and len(error["loc"]) > 1
    })
    message = "Invalid request payload"
    if fields:
        message = f"{message}: missing or invalid {', '.join(fields)}"
    return error_response(400, message)


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"❌ Storage failure on {request.method} {request.url.path}: {str(exc)}")
    return error_response(500, "Storage error")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"❌ Unexpected failure on {request.method} {request.url.path}: {str(exc)}")
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(redis.RedisError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
