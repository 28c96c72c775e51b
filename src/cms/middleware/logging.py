"""Request logging middleware."""
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

PROBE_PATHS = frozenset({"/api/cms/health/live", "/api/cms/health/ready"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one ``http_request`` event per request.

    Probe traffic is skipped. Method and path stay bound to the structlog
    context while the request runs, so handler events carry them too.
    Server errors are logged at error level.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        excluded_paths: frozenset[str] = PROBE_PATHS,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._excluded = excluded_paths

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self._excluded:
            return await call_next(request)

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)
            log = logger.error if response.status_code >= 500 else logger.info
            log(
                "http_request",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                client=request.client.host if request.client else None,
            )

        return response
