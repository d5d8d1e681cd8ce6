"""
FastAPI application entry point for the premium gift backend.

This module initializes the FastAPI application with:
- Application state (document store, outbound delivery client)
- CORS middleware for the web panel
- Exception handlers rendering ``{"success": false, "error": ...}``
- Rate limiting for the public gift endpoints
- Logging configuration

Environment Variables:
    SB_STORAGE_BACKEND: memory, file or sql (default: file)
    SB_ENV: Environment (production/development, default: development)
    SB_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)

Run with:
    uvicorn premium_backend.main:app
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from premium_backend import __version__
from premium_backend.api import gifts, notifications, trials
from premium_backend.api.limiter import limiter
from premium_backend.config.settings import get_settings
from premium_backend.services.delivery_service import DeliveryService
from premium_backend.services.exceptions import ServiceError
from premium_backend.stores import create_store
from premium_backend.utils.logging_config import get_logger, init_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: create the document store and the delivery client
    - Shutdown: close both

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    settings = get_settings()
    logger.info(
        "Starting premium backend",
        extra={
            "storage_backend": settings.storage_backend,
            "version": __version__,
            "companion_bot": settings.companion_bot_configured,
            "webhook": settings.webhook_configured,
        },
    )

    app.state.store = create_store(settings)

    delivery = DeliveryService(
        companion_bot_url=settings.companion_bot_url,
        companion_bot_token=settings.companion_bot_token,
        webhook_url=settings.webhook_url,
        timeout=settings.delivery_timeout,
    )
    if delivery.enabled:
        app.state.delivery = delivery
    else:
        delivery.close()
        app.state.delivery = None
        logger.info("Outbound delivery disabled (no companion bot or webhook URL)")

    yield

    logger.info("Shutting down premium backend")
    if app.state.delivery is not None:
        app.state.delivery.close()
    app.state.store.close()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="Premium Gift API",
    description="Backend API for premium codes, trial gifts and the developer notification feed.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# RateLimitExceeded is a Starlette HTTPException (429), rendered by http_exception_handler
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """
    Render service errors with the status code they carry.

    Args:
        request: HTTP request
        exc: ServiceError subclass raised by a service

    Returns:
        JSON response ``{"success": false, "error": message}``
    """
    logger = get_logger("api")
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
            "error": exc.message,
        },
    )
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request body/query validation errors as 400.

    The first error is reported as ``<field>: <message>``.
    """
    logger = get_logger("api")
    errors = exc.errors()
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": [str(e.get("msg")) for e in errors],
        },
    )

    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Args:
        request: HTTP request
        exc: Unhandled exception

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "premium-backend",
        "version": __version__,
        "storage_backend": get_settings().storage_backend,
    }


@app.get("/api/health", tags=["Health"], include_in_schema=False)
async def api_health_check() -> Dict[str, Any]:
    return await health_check()


# API routers
app.include_router(gifts.router, prefix="/api")
app.include_router(trials.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
