"""
Authentication gate for mutation endpoints.

Two credentials are accepted:

- a static API key for agents and automation, sent as ``x-api-key`` or
  ``Authorization: Bearer <key>``
- a signed session cookie for the browser dashboard, issued by ``POST /auth``
  and holding an HS256 JWT

Usage::

    @router.post("/api/phase")
    async def change_phase(body: PhaseChangeRequest, _=Depends(require_api_or_session)):
        ...
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request

from core.config import settings
from core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SESSION_SUBJECT = "dashboard"


def extract_api_key(request: Request) -> Optional[str]:
    """Read the API key from ``x-api-key`` or a Bearer Authorization header."""
    api_key = request.headers.get("x-api-key")
    if api_key:
        return api_key
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:]
    return None


def verify_api_key(request: Request) -> bool:
    """True when the request carries the configured API key."""
    expected = settings.API_KEY
    if not expected:
        return False
    provided = extract_api_key(request)
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def issue_session_token(now: Optional[datetime] = None) -> str:
    """Sign a session token valid for ``SESSION_MAX_AGE_DAYS``."""
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": SESSION_SUBJECT,
        "iat": now,
        "exp": now + timedelta(days=settings.SESSION_MAX_AGE_DAYS),
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=JWT_ALGORITHM)


def verify_session_token(token: Optional[str]) -> bool:
    if not token:
        return False
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return False
    return payload.get("sub") == SESSION_SUBJECT


def session_cookie_params() -> dict:
    """Cookie attributes for the dashboard session."""
    return {
        "key": settings.SESSION_COOKIE_NAME,
        "httponly": True,
        "secure": settings.ENVIRONMENT == "production",
        "samesite": "lax",
        "max_age": 60 * 60 * 24 * settings.SESSION_MAX_AGE_DAYS,
        "path": "/",
    }


async def require_api_key(request: Request) -> None:
    """FastAPI dependency: API key only (agent callbacks)."""
    if not verify_api_key(request):
        logger.warning(f"API key rejected for {request.method} {request.url.path}")
        raise UnauthorizedError()


async def require_api_or_session(request: Request) -> None:
    """FastAPI dependency: API key or a valid dashboard session cookie."""
    if verify_api_key(request):
        return
    if verify_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME)):
        return
    logger.warning(f"Unauthenticated {request.method} {request.url.path}")
    raise UnauthorizedError()
