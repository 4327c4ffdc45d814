"""
Parley - Main Application Entry Point

Conversational AI front end with persisted threads.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parley import __version__
from parley.core.config import get_settings
from parley.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CapacityExceededError,
    NotFoundError,
    ParleyError,
    PayloadTooLargeError,
    UnsupportedFileTypeError,
    ValidationError,
)
from parley.core.logger import logger

_ERROR_STATUS: list[tuple[type[ParleyError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CapacityExceededError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedFileTypeError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
]


def status_for(error: ParleyError) -> int:
    """Map a domain error onto an HTTP status code."""
    for error_type, code in _ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info(f"Starting Parley in {settings.ENVIRONMENT} mode...")

    from parley.infrastructure.local.database import dispose_db, init_db

    await init_db()

    from parley.api.deps import get_auth_provider

    # Fails fast on an auth setup that is unsafe for this environment
    get_auth_provider()

    yield

    logger.info("Shutting down Parley...")
    from parley.api.deps import close_provider_clients

    await close_provider_clients()
    await dispose_db()


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": str}``."""

    @app.exception_handler(ParleyError)
    async def parley_error_handler(request: Request, exc: ParleyError):
        code = status_for(exc)
        if code >= 500:
            logger.error(f"Unhandled domain error on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Parley",
        description="Conversational AI front end with persisted threads",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    from parley.api import chat, files, models, threads

    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(threads.router, prefix="/api", tags=["threads"])
    app.include_router(files.router, prefix="/api/files", tags=["files"])
    app.include_router(models.router, prefix="/api/models", tags=["models"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": __version__,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
