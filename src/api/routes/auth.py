"""OAuth login/callback/logout and identity endpoints."""

from typing import Optional
from urllib.parse import urlencode, urlsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials

from src.api.deps import AUTH_COOKIE, bearer, get_services, optional_auth, require_auth, resolve_user
from src.api.schemas import LogoutRequest
from src.auth.tokens import issue_state, issue_token, verify_state
from src.errors import AppError, AuthenticationError, DomainNotAllowedError
from src.services import Services
from src.utils.config import Settings
from src.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def safe_return_to(url: Optional[str], cfg: Settings, default: str) -> str:
    """Accept *url* only when it points at the frontend or an allowed origin."""
    if not url:
        return default
    target = urlsplit(url)
    for origin in [cfg.frontend_url, *cfg.allowed_origins]:
        allowed = urlsplit(origin)
        if target.scheme == allowed.scheme and target.netloc == allowed.netloc:
            return url
    log.warning("Rejected returnTo outside allowed origins: %s", url)
    return default


def _with_params(url: str, **params: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def _login_error(cfg: Settings, error: str, message: Optional[str] = None) -> RedirectResponse:
    params = {"error": error}
    if message:
        params["message"] = message
    return RedirectResponse(_with_params(f"{cfg.frontend_url}/login", **params), status_code=302)


@router.get("/login")
async def login(request: Request, returnTo: Optional[str] = None, services: Services = Depends(get_services)):
    cfg = services.settings
    redirect_uri = str(request.url_for("auth_callback"))
    state = issue_state(safe_return_to(returnTo, cfg, cfg.frontend_url), cfg)
    return {
        "success": True,
        "loginUrl": services.identity.login_url(state, redirect_uri),
        "message": "Redirect to this URL to login with Google",
    }


@router.get("/callback", name="auth_callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    services: Services = Depends(get_services),
):
    cfg = services.settings
    if error:
        log.warning("Identity provider returned an error: %s %s", error, error_description)
        return _login_error(cfg, "auth_failed", error_description or error)

    try:
        state_claims = verify_state(state, cfg)
    except AuthenticationError as exc:
        log.warning("Invalid or expired state parameter: %s", exc.message)
        return _login_error(cfg, "invalid_state", "Authentication state expired, please try again")

    if not code:
        return _login_error(cfg, "no_code")

    try:
        user = await services.identity.complete_authentication(
            code, str(request.url_for("auth_callback"))
        )
    except DomainNotAllowedError as exc:
        return _login_error(cfg, "domain_not_allowed", exc.message)
    except AppError as exc:
        log.error("Callback processing failed: %s", exc.message)
        return _login_error(cfg, "callback_failed", exc.message)

    token = issue_token(user, cfg)
    request.session["user"] = user

    return_to = safe_return_to(state_claims.get("returnTo"), cfg, cfg.frontend_url)
    params = {"auth": "success"}
    if cfg.auth_token_in_redirect:
        params["token"] = token
    response = RedirectResponse(_with_params(return_to, **params), status_code=302)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=cfg.jwt_expires_hours * 60 * 60,
        httponly=True,
        secure=cfg.session_secure,
        samesite="none" if cfg.session_secure else "lax",
    )
    log.info("User logged in: %s", user.get("email"))
    return response


@router.post("/logout")
async def logout(
    request: Request,
    body: Optional[LogoutRequest] = None,
    user: dict = Depends(require_auth),
    services: Services = Depends(get_services),
):
    cfg = services.settings
    default = f"{cfg.frontend_url}/logout"
    return_to = safe_return_to(body.returnTo if body else None, cfg, default)
    request.session.clear()
    response = JSONResponse(
        {
            "success": True,
            "logoutUrl": services.identity.logout_url(return_to),
            "message": "Logged out successfully",
        }
    )
    response.delete_cookie(AUTH_COOKIE, path="/")
    log.info("User logged out: %s", user.get("email"))
    return response


@router.get("/user")
async def current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    services: Services = Depends(get_services),
):
    try:
        user = resolve_user(request, credentials, services.settings)
    except AuthenticationError:
        response = JSONResponse(
            status_code=401, content={"success": False, "authenticated": False, "user": None}
        )
        response.delete_cookie(AUTH_COOKIE, path="/")
        return response
    if user is None:
        return JSONResponse(
            status_code=401, content={"success": False, "authenticated": False, "user": None}
        )
    return {"success": True, "authenticated": True, "user": user}


@router.get("/status")
async def status(
    user: Optional[dict] = Depends(optional_auth),
    services: Services = Depends(get_services),
):
    cfg = services.settings
    return {
        "success": True,
        "authenticated": user is not None,
        "domainRestrictions": {
            "enabled": cfg.domain_restrictions_enabled,
            "allowedDomains": cfg.allowed_domains,
            "allowAllGmail": cfg.allow_all_gmail,
        },
    }
