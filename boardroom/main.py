"""Boardroom: Main FastAPI Application.

Backend for a multi-tenant governance platform: an organization hierarchy,
membership and join-parent request workflows, boards, polls and
phone-number authentication with server-side sessions.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import api_router
from .api.errors import ApiError, api_error_handler
from .core import close_db, get_settings, init_db
from .core.middleware import LoginRedirectMiddleware
from .schemas import ErrorResponse

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Starting %s %s (%s)", settings.app_name, settings.app_version, settings.environment)

    # Tables are managed by migrations in production
    if settings.environment != "production":
        try:
            await init_db()
        except (OSError, SQLAlchemyError) as e:
            logger.warning("Could not initialize database: %s", e)
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Boardroom API

    Governance backend for hierarchies of organizations.

    ### Authentication

    Log in with `POST /auth/login`. The response sets an HttpOnly `session`
    cookie that authenticates every other endpoint for 30 days.
    """,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)

app.add_middleware(LoginRedirectMiddleware)

# CORS middleware with explicit origins (credentials require explicit origins, not "*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
    allow_headers=["*"],
    max_age=86400,
)

app.add_exception_handler(ApiError, api_error_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    message = "An unexpected error occurred"
    if settings.debug:
        message = f"{message}: {str(exc)[:200]}"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="internal_error",
            message=message,
            details=[],
        ).model_dump(),
    )


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "boardroom.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
