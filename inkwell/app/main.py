from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from inkwell.app.api.admin.router import router as admin_router
from inkwell.app.api.articles import router as articles_router
from inkwell.app.api.comments import router as comments_router
from inkwell.app.core.config import settings
from inkwell.app.core.logging import get_logger, setup_logging
from inkwell.app.db import models  # noqa: F401 - import to register models
from inkwell.app.db.async_session import close_async_engine
from inkwell.app.db.dependencies import SessionDep
from inkwell.app.db.init_db import init_database, verify_connection
from inkwell.app.exceptions import InkwellError, InvalidRequestError, RateLimitExceededError
from inkwell.app.middleware.rate_limit import build_rate_limiters
from inkwell.app.middleware.rate_limit.limiter import Clock
from inkwell.app.middleware.request_id import RequestIdMiddleware, get_request_id


def create_app(clock: Optional[Clock] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        clock: Time source for the rate limiters (seconds). Defaults to
            ``time.time``; tests pass a fake clock.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create tables on startup and dispose the engine on shutdown."""
        if not await verify_connection():
            logger.error("Database connection failed!")
            raise RuntimeError("Cannot connect to database")

        await init_database()
        logger.info(
            "Application startup complete",
            extra={
                "debug_mode": settings.debug,
                "comment_rate_limit": settings.comment_rate_limit,
                "comment_like_rate_limit": settings.comment_like_rate_limit,
                "trust_forwarded_for": settings.trust_forwarded_for,
            },
        )

        yield

        await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Inkwell",
        description="Blog comment moderation and rate limiting service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # One limiter per action, owned by this application instance
    app.state.rate_limiters = build_rate_limiters(clock)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=600,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(comments_router)
    app.include_router(articles_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health(session: SessionDep) -> dict[str, Any]:
        """Health check with database status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}
        try:
            await session.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100],  # Truncate for security
            }
        return health_status

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 with Retry-After."""
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=exc.headers(),
        )

    @app.exception_handler(InkwellError)
    async def inkwell_error_handler(request: Request, exc: InkwellError) -> JSONResponse:
        """Map the service exception hierarchy to JSON error responses."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed bodies and parameters as 400 invalid_request."""
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        error = InvalidRequestError(message)
        return JSONResponse(status_code=error.status_code, content=error.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is logged server-side and never returned to the client.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )

        content = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
