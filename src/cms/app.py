"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cms.auth.credentials import CredentialChecker
from cms.auth.rate_limit import InMemoryRateLimiter, RateLimiter, run_rate_limit_sweeper
from cms.auth.session import SessionManager
from cms.config import Settings
from cms.content.markdown import MarkdownContent
from cms.errors import CMSError
from cms.middleware.auth import SessionAuthMiddleware
from cms.middleware.logging import RequestLoggingMiddleware
from cms.routes import auth, collections, content, health, upload
from cms.storage import StorageProvider, create_storage_provider

logger = structlog.get_logger()

API_PREFIX = "/api/cms"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Starts the rate limit sweeper when the limiter is in-memory, and
    releases storage clients on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "api_startup",
        host=settings.host,
        port=settings.port,
        environment=settings.environment,
        storage=app.state.storage.name,
    )

    sweeper_task: asyncio.Task[None] | None = None
    if isinstance(app.state.rate_limiter, InMemoryRateLimiter):
        sweeper_task = asyncio.create_task(
            run_rate_limit_sweeper(
                app.state.rate_limiter,
                interval=settings.rate_limit_sweep_interval,
            )
        )

    try:
        yield
    finally:
        if sweeper_task is not None:
            sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper_task

        app.state.storage.close()
        logger.info("api_shutdown")


def register_exception_handlers(app: FastAPI) -> None:
    """Map CMS errors and malformed request bodies to ``{"error": message}`` responses.

    The message is returned verbatim; only the authenticated administrator
    reaches the endpoints that raise these.
    """

    @app.exception_handler(CMSError)
    async def cms_error_handler(request: Request, exc: CMSError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            status=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        logger.warning(
            "request_invalid",
            path=request.url.path,
            fields=[".".join(str(part) for part in e.get("loc", ())) for e in errors],
        )
        if request.url.path == f"{API_PREFIX}/login":
            message = "Username and password are required"
        elif errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
            message = f"Invalid request body: {field}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_crashed", path=request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        storage: Storage backend. Selected from settings if None.
        rate_limiter: Login rate limiter. In-memory if None.

    Returns:
        Configured FastAPI application.

    Raises:
        MisconfiguredSecretError: If the session secret is missing or short.
        ConfigurationError: If the selected storage backend is misconfigured.
    """
    if settings is None:
        settings = Settings()

    session_manager = SessionManager(settings.session_secret)

    if storage is None:
        storage = create_storage_provider(settings)

    if rate_limiter is None:
        rate_limiter = InMemoryRateLimiter(
            max_attempts=settings.rate_limit_max_attempts,
            window_seconds=settings.rate_limit_window_seconds,
        )

    app = FastAPI(
        title="Markdown CMS API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=f"{API_PREFIX}/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.session_manager = session_manager
    app.state.credentials = CredentialChecker(
        settings.admin_username,
        settings.admin_password,
        password_min_length=settings.password_min_length,
    )
    app.state.rate_limiter = rate_limiter
    app.state.storage = storage
    app.state.content = MarkdownContent(storage, max_file_size=settings.max_file_size)

    register_exception_handlers(app)

    # Added innermost first: CORS wraps logging, which wraps auth.
    app.add_middleware(SessionAuthMiddleware, session_manager=session_manager)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["Retry-After"],
    )

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(content.router, prefix=API_PREFIX)
    app.include_router(collections.router, prefix=API_PREFIX)
    app.include_router(upload.router, prefix=API_PREFIX)

    return app
