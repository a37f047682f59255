"""
Ferdi Server FastAPI application entry point.

Routes: /v1 (Franz-compatible client API), /import (account import UI), /health.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import __version__
from app.config import get_settings
from app.db.session import check_db_connection, engine, init_db
from app.errors import AppError, ValidationFailed

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Ferdi Server starting")
    try:
        try:
            check_db_connection()
            init_db()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise

        settings = get_settings()
        if not settings.secret_key:
            logger.warning("SECRET_KEY is empty; access tokens are not secure")
        logger.info(
            "Registration %s, federation %s",
            "enabled" if settings.is_registration_enabled else "disabled",
            "enabled" if settings.connect_with_franz else "disabled",
        )

        yield
    finally:
        logger.info("Ferdi Server shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as ``{message, code, status}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation errors in the same shape as ValidationFailed."""
    error = ValidationFailed(
        errors=[
            {
                "field": ".".join(str(p) for p in err["loc"] if p != "body") or "body",
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Mount API routes
    from app.api.auth import router as auth_router
    from app.api.imports import router as imports_router
    from app.api.recipes import router as recipes_router
    from app.api.services import router as services_router
    from app.api.users import router as users_router
    from app.api.workspaces import router as workspaces_router

    app.include_router(auth_router, prefix="/v1/auth", tags=["auth"])
    app.include_router(users_router, prefix="/v1", tags=["users"])
    app.include_router(services_router, prefix="/v1", tags=["services"])
    app.include_router(workspaces_router, prefix="/v1", tags=["workspaces"])
    app.include_router(recipes_router, prefix="/v1", tags=["recipes"])

    # HTML account import (no prefix, serves /import)
    app.include_router(imports_router, tags=["import"])

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint. Confirms DB connectivity."""
        from sqlalchemy import text

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
