"""leaveledger — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leaveledger import __version__
from leaveledger.common.exceptions import register_exception_handlers
from leaveledger.common.logging import setup_logging
from leaveledger.common.rate_limit import limiter
from leaveledger.config import settings
from leaveledger.database import engine
from leaveledger.leave.router import router as leave_router

# Register every mapped class before the first query
import leaveledger.auth.models  # noqa: F401
import leaveledger.common.audit  # noqa: F401
import leaveledger.core_hr.models  # noqa: F401
import leaveledger.leave.models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info(
        "leaveledger %s starting (environment=%s, balance_policy=%s)",
        __version__, settings.ENVIRONMENT, settings.BALANCE_POLICY,
    )
    yield
    await engine.dispose()
    logger.info("leaveledger stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="leaveledger",
        description="Leave requests and leave balance reconciliation",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])

    return app


app = create_app()
