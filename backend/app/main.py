"""FastAPI application entry point."""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes import progress, session
from app.config import Settings, settings
from app.core.access_control import AccessController
from app.core.routes import RouteTable
from app.db.database import async_session_factory, engine
from app.middleware.access_control import AccessControlMiddleware
from app.models.envelope import error_envelope
from app.services.profile_service import SqlProfileStore
from app.services.session_service import SessionResolver

logger = logging.getLogger(__name__)

# Configure logging format based on dev_mode
if not settings.dev_mode:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}',
    )
else:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if not settings.dev_mode:
            response.headers["Strict-Transport-Security"] = (
                "max-age=63072000; includeSubDomains"
            )
        return response


def create_app(
    config: Settings = settings,
    session_resolver: SessionResolver | None = None,
    profile_store=None,
) -> FastAPI:
    """Build the application with its collaborators wired in."""
    application = FastAPI(
        title="ARKA-ED API",
        description="Access gate and progress tracking for imaging-appropriateness cases",
        version="0.1.0",
        openapi_url="/api/v1/openapi.json",
        docs_url="/api/docs" if config.dev_mode else None,
        redoc_url=None,
    )

    resolver = session_resolver or SessionResolver.from_settings(config)
    store = profile_store or SqlProfileStore(async_session_factory)
    application.state.session_resolver = resolver
    application.state.profile_store = store

    # -----------------------------------------------------------------------
    # Middleware — the access gate runs inside CORS and security headers
    # -----------------------------------------------------------------------

    controller = AccessController(RouteTable.from_settings(config), resolver, store)
    application.add_middleware(AccessControlMiddleware, controller=controller)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    # -----------------------------------------------------------------------
    # Global exception handler
    # -----------------------------------------------------------------------

    @application.exception_handler(Exception)
    async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=True)
        detail = str(exc) if config.dev_mode else "Internal server error"
        return JSONResponse(status_code=500, content=error_envelope("INTERNAL_ERROR", detail))

    # -----------------------------------------------------------------------
    # Routers — all under /api/v1/
    # -----------------------------------------------------------------------

    application.include_router(session.router, prefix="/api/v1/session", tags=["session"])
    application.include_router(progress.router, prefix="/api/v1/progress", tags=["progress"])

    @application.get("/health")
    async def health_check() -> dict:
        """Liveness check — verifies the API process is alive."""
        return {"status": "healthy"}

    @application.get("/health/ready")
    async def readiness_check() -> JSONResponse:
        """Readiness check — verifies the database is reachable."""
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "ok"
        except Exception:
            logger.warning("Readiness check: database unavailable", exc_info=True)
            database = "unavailable"

        ok = database == "ok"
        return JSONResponse(
            status_code=200 if ok else 503,
            content={"status": "ready" if ok else "degraded", "services": {"database": database}},
        )

    @application.get("/api/v1/version")
    async def version() -> dict:
        """Return build / version metadata."""
        return {
            "version": application.version,
            "title": application.title,
            "api_prefix": "/api/v1",
        }

    # -----------------------------------------------------------------------
    # Front-end build, served behind the access gate
    # -----------------------------------------------------------------------

    if config.frontend_dir and os.path.isdir(config.frontend_dir):
        application.mount("/", StaticFiles(directory=config.frontend_dir, html=True), name="frontend")

    return application


app = create_app()
