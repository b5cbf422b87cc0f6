"""FastAPI application for the signed, metered arithmetic API.

Main entry point. Users register for an API key and secret key, sign each
request with HMAC-SHA256 and spend a per-plan request quota on the /math
endpoints.
"""

import logging
import time
from contextlib import asynccontextmanager
from http import HTTPStatus

import anyio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from arithmetic_api.config import get_settings
from arithmetic_api.errors import ArithmeticApiError, RequestTimeoutError
from arithmetic_api.ratelimit import limiter, rate_limit_exceeded_handler
from arithmetic_api.routes import auth, health
from arithmetic_api.routes import math as math_routes
from arithmetic_api.services import database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifespan context manager for startup and shutdown events.

    Handles:
    - Startup: Initialise MongoDB connection and ensure indexes
    - Shutdown: Close MongoDB connection gracefully

    Args:
        fastapi_app: FastAPI application instance.

    Yields:
        Control back to FastAPI during application lifetime.
    """
    # Startup
    logger.info("Starting arithmetic API service...")

    # Load app
    _ = fastapi_app

    # Load settings
    _ = get_settings()

    try:
        # Initialise database connection
        database.get_client()
        logger.info("MongoDB connection initialised")

        # Ensure database indexes exist
        database.ensure_indexes()
        logger.info("Database indexes verified")

        logger.info("Application startup complete")

    except Exception as e:
        logger.error("Failed to initialise application: %s", e, exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down application...")
    try:
        database.close_client()
        logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error("Error during shutdown: %s", e, exc_info=True)

    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Arithmetic API",
    description=(
        "Arithmetic operations behind signed API keys with per-plan usage quotas"
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.middleware("http")
async def enforce_request_timeout(request: Request, call_next):
    """Abort requests that run longer than the configured timeout.

    The deadline is also stored on ``request.state`` so the usage gate can
    refuse to count a request that has already been answered with a 504.
    """
    timeout = get_settings().app.request_timeout_seconds
    request.state.deadline = time.monotonic() + timeout
    try:
        with anyio.fail_after(timeout):
            return await call_next(request)
    except TimeoutError:
        logger.error(
            "Request %s %s timed out after %.1fs", request.method, request.url, timeout
        )
        return JSONResponse(
            status_code=504,
            content=RequestTimeoutError().to_response(),
        )


# Add CORS middleware
cors_settings = get_settings().app
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_settings.cors_origins,
    allow_credentials=cors_settings.cors_allow_credentials,
    allow_methods=cors_settings.cors_allow_methods,
    allow_headers=cors_settings.cors_allow_headers,
)


@app.exception_handler(ArithmeticApiError)
async def api_error_handler(request: Request, exc: ArithmeticApiError):
    """Render domain errors with their status code."""
    _ = request
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render malformed requests as 400 instead of FastAPI's 422."""
    _ = request
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": "; ".join(messages)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render framework HTTP errors (404 routes, 405, readiness) uniformly."""
    _ = request
    content = {"error": HTTPStatus(exc.status_code).phrase.lower().replace(" ", "_")}
    if isinstance(exc.detail, dict):
        content.update(exc.detail)
    else:
        content["message"] = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions globally.

    Args:
        request: FastAPI request object.
        exc: Exception that was raised.

    Returns:
        JSON response without internal details.
    """
    logger.error(
        "Unhandled exception for %s %s: %s",
        request.method,
        request.url,
        exc,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Internal server error",
        },
    )


# Register routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(math_routes.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information.

    Returns:
        Dictionary with API details and links.
    """
    return {
        "service": "Arithmetic API",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "readiness": "/health/ready",
            "register": "POST /auth/register",
            "upgrade_plan": "PATCH /auth/upgrade-plan",
            "calculate": "GET /math/calculate",
            "records": "/math/",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
