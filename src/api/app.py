"""FastAPI application factory."""

import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from src.api.routes import auth, chat, files, health, upload, webhook
from src.errors import AppError
from src.services import Services, build_services
from src.utils.config import Settings, settings, validate_environment
from src.utils.logger import get_logger

log = get_logger(__name__)


def _error_body(error: str, message: str, exc: Optional[BaseException], cfg: Settings) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "message": message}
    if exc is not None and cfg.is_development:
        body["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def create_app(services: Optional[Services] = None, cfg: Settings = settings) -> FastAPI:
    """Build the API.  Pass *services* to skip constructing real clients (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        validate_environment(cfg)
        owned = services is None
        if owned:
            app.state.services = build_services(cfg)
            try:
                await app.state.services.redis.ensure_index()
            except RedisError as exc:
                log.error("Vector index unavailable at start-up: %s", exc)
        log.info("Server ready (%s) on port %d", cfg.environment, cfg.port)
        yield
        if owned:
            await app.state.services.close()

    app = FastAPI(title="Universal Knowledge Chatbot", version="1.0.0", lifespan=lifespan)
    app.state.settings = cfg
    app.state.services = services
    app.state.started_at = time.monotonic()

    app.add_middleware(
        SessionMiddleware,
        secret_key=cfg.session_secret,
        max_age=cfg.jwt_expires_hours * 60 * 60,
        https_only=cfg.session_secure,
        same_site="none" if cfg.session_secure else "lax",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- error handlers -----------------------------------------------------

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            body = _error_body(exc.error, exc.message, exc, cfg)
        else:
            log.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
            body = _error_body(exc.error, exc.message, None, cfg)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content=_error_body("Validation failed", message, None, cfg))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            body = _error_body("Not found", f"Route {request.url.path} not found", None, cfg)
        else:
            body = _error_body(str(exc.detail), str(exc.detail), None, cfg)
        return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Internal server error" if cfg.environment == "production" else str(exc)
        return JSONResponse(status_code=500, content=_error_body("Internal server error", message, exc, cfg))

    # -- routes -------------------------------------------------------------

    for module in (health, auth, chat, upload, files, webhook):
        app.include_router(module.router, prefix="/api")

    return app
