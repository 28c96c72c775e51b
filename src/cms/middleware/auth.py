"""Session cookie authentication middleware."""

from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from cms.auth.session import SESSION_COOKIE_NAME, SessionManager

logger = structlog.get_logger()

PROTECTED_PREFIXES = (
    "/api/cms/collections",
    "/api/cms/content",
    "/api/cms/list",
    "/api/cms/upload",
)


def is_protected(path: str) -> bool:
    """Whether ``path`` is, or is below, a protected prefix."""
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in PROTECTED_PREFIXES)


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Middleware that requires a valid session cookie for content endpoints.

    Login, logout and health endpoints are public. The verified session
    payload is exposed as ``request.state.session``.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        session_manager: SessionManager,
    ) -> None:
        """Initialize middleware with a session manager.

        Args:
            app: ASGI application.
            session_manager: Verifies session tokens.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self._sessions = session_manager

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Reject protected requests without a valid session.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response, or 401 if the session is missing or invalid.
        """
        if not is_protected(request.url.path):
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE_NAME)
        session = self._sessions.verify_session(token)

        if session is None:
            logger.info("unauthorized_request", path=request.url.path, had_cookie=bool(token))
            return JSONResponse(
                status_code=401,
                content={"error": "Unauthorized"},
            )

        request.state.session = session
        return await call_next(request)
