from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from household_api import __version__
from household_api.core.config import get_settings
from household_api.core.errors import AppError
from household_api.core.logging_config import configure_logging
from household_api.core.responses import failure, success
from household_api.db import create_all, seed_roles_and_permissions
from household_api.routers import auth as auth_router
from household_api.routers import categories as categories_router
from household_api.routers import users as users_router
from household_api.schemas import VALIDATION_FAILED, field_errors

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, nosniff, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _app_error(request: Request, exc: AppError):
    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after:
        headers = {"Retry-After": str(retry_after)}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return failure(exc.message, exc.status_code, exc.details, headers)


async def _validation_error(request: Request, exc: RequestValidationError):
    return failure(VALIDATION_FAILED, 422, field_errors(exc.errors()))


async def _http_error(request: Request, exc: StarletteHTTPException):
    return failure(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))


@asynccontextmanager
async def _lifespan(app: FastAPI):
    create_all()
    seed_roles_and_permissions()
    logger.info("Household API %s started (env=%s)", __version__, get_settings().app_env)
    yield


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    configure_logging()
    settings = get_settings()

    app = FastAPI(title="Household Services API", version=__version__, lifespan=_lifespan)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(AppError, _app_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)

    @app.get("/health")
    def health():
        return success({"status": "ok", "version": __version__})

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(categories_router.router)
    return app


app = create_app()
