"""
Dashboard login: exchanges the dashboard password for a signed session cookie
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import hmac
import logging

from api.dependencies import enforce_login_rate_limit, client_token
from core.config import settings
from core.exceptions import UnauthorizedError
from core.security import issue_session_token, session_cookie_params
from schemas.api import AuthRequest

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Auth"])


@router.post("/auth", dependencies=[Depends(enforce_login_rate_limit)])
async def login(body: AuthRequest, request: Request):
    """
    Check the dashboard password and set the session cookie.

    Rate limited per client address; 401 on a wrong password.
    """
    expected = settings.DASHBOARD_PASSWORD
    if not expected or not hmac.compare_digest(body.password.encode(), expected.encode()):
        logger.warning(f"Failed dashboard login from {client_token(request)}")
        raise UnauthorizedError("Invalid password")

    response = JSONResponse({"ok": True})
    response.set_cookie(value=issue_session_token(), **session_cookie_params())
    logger.info(f"Dashboard session issued to {client_token(request)}")
    return response
