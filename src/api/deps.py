"""Request-scoped dependencies: the services container and the caller's identity."""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.auth.tokens import verify_token
from src.errors import AuthenticationError
from src.services import Services
from src.tools.base import ANONYMOUS_USER
from src.utils.config import Settings

AUTH_COOKIE = "auth_token"
ANONYMOUS = ANONYMOUS_USER

bearer = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def resolve_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    cfg: Settings,
) -> Optional[Dict[str, Any]]:
    """Identify the caller from, in order, the bearer header, the auth cookie, the session.

    Returns None when no credential is present; raises ``AuthenticationError``
    when a token is present but invalid or expired.
    """
    token = None
    if credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    elif AUTH_COOKIE in request.cookies:
        token = request.cookies[AUTH_COOKIE]
    if token:
        return verify_token(token, cfg).to_user()

    return request.session.get("user") or None


async def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Dict[str, Any]:
    user = resolve_user(request, credentials, get_settings(request))
    if user is None:
        raise AuthenticationError("No valid authentication token or session found")
    return user


async def optional_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[Dict[str, Any]]:
    try:
        return resolve_user(request, credentials, get_settings(request))
    except AuthenticationError:
        return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[Dict[str, Any]]:
    """``require_auth`` or ``optional_auth`` depending on ``AUTH_REQUIRED``."""
    if get_settings(request).auth_required:
        return await require_auth(request, credentials)
    return await optional_auth(request, credentials)


def user_id_of(user: Optional[Dict[str, Any]]) -> str:
    return user["id"] if user else ANONYMOUS


async def verify_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None),
) -> None:
    expected = get_settings(request).webhook_api_key
    if not expected or x_api_key != expected:
        raise AuthenticationError("Invalid API key", error="Invalid API key")
