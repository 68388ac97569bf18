"""
Exception handlers mapping the error taxonomy onto JSON responses.

Every response body carries ``error`` (human-readable) and ``code``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from core.exceptions import MissionControlError, RateLimitExceededError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, code: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code},
        headers=headers
    )


async def mission_control_error_handler(request: Request, exc: MissionControlError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    if exc.status_code >= 500:
        logger.error(f"[{request_id}] {request.method} {request.url.path}: {exc}")
    else:
        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimitExceededError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return error_response(exc.status_code, exc.message, exc.code, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    logger.info(f"{request.method} {request.url.path} -> 400 validation: {message}")
    return error_response(400, message, "BAD_REQUEST")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    logger.exception(f"[{request_id}] Unhandled error on {request.method} {request.url.path}")
    return error_response(500, str(exc), "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MissionControlError, mission_control_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
