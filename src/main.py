"""taskboard - team task management with checklist-driven progress."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core import db_client
from src.core.config import Settings, get_settings
from src.core.errors import register_error_handlers
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.security import TokenSigner
from src.interface.admin_router import reports_router, users_router
from src.interface.auth_router import router as auth_router
from src.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


def validate_startup_configuration(settings: Settings) -> None:
    """Validate required credentials, failing fast with a clear message.

    Raises:
        SystemExit: If the token signing secret is missing
    """
    logger.info("startup_validation_begin")

    try:
        settings.require_credential("secret_key", "Access token signing")
        logger.info("startup_validation", extra={"stage": "credentials", "status": "ok"})
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    if settings.access_token_max_age_seconds is None:
        logger.warning("startup_validation", extra={"stage": "tokens", "status": "no_expiry"})
    if not settings.admin_join_code:
        logger.info("startup_validation", extra={"stage": "admin_signup", "status": "disabled"})

    logger.info("startup_validation_complete", extra={"status": "ok"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    settings: Settings = app.state.settings

    # Configure logging first so validation logs are captured
    configure_logfire(settings)
    validate_startup_configuration(settings)

    await db_client.init_db(db_path=settings.sqlite_db_path)
    logger.info("Database initialized", extra={"db_path": settings.sqlite_db_path})

    yield

    await db_client.close_connection()
    logger.info("Database connection closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around the given settings (read from the environment by default)."""
    settings = settings or get_settings()

    app = FastAPI(
        title="taskboard",
        description="Team task management with checklist-driven progress",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # The lifespan refuses to start without a secret; until then requests needing a signer fail with 500
    app.state.token_signer = TokenSigner(settings) if settings.secret_key else None

    register_error_handlers(app)
    instrument_fastapi(app, settings)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(task_router)
    app.include_router(reports_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "healthy"}, status_code=200)

    return app


app = create_app()
