"""Login and logout endpoints."""

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cms.auth.credentials import CredentialChecker
from cms.auth.rate_limit import RateLimiter
from cms.auth.session import SessionManager, clear_session_cookie, set_session_cookie
from cms.config import Settings
from cms.content.schemas import (
    ErrorResponse,
    LoginRequest,
    RateLimitedResponse,
    SuccessResponse,
)
from cms.errors import MisconfiguredAuthError

logger = structlog.get_logger()

router = APIRouter(tags=["auth"])


def client_identifier(request: Request) -> str:
    """Identify the client for rate limiting.

    Uses the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer address.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


@router.post(
    "/login",
    response_model=SuccessResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": RateLimitedResponse},
        500: {"model": ErrorResponse},
    },
    summary="Log in as the administrator",
)
def login(body: LoginRequest, request: Request) -> JSONResponse:
    """Check credentials and start a session.

    Failed attempts count against the client's rate limit; a successful
    login clears it. Every credential failure returns the same message.

    Args:
        body: Submitted username and password.
        request: FastAPI request (provides access to app state).

    Returns:
        200 with the session cookie set, or an error response.
    """
    settings: Settings = request.app.state.settings
    limiter: RateLimiter = request.app.state.rate_limiter
    credentials: CredentialChecker = request.app.state.credentials
    sessions: SessionManager = request.app.state.session_manager

    client = client_identifier(request)
    status = limiter.check(client)

    if status.is_limited:
        retry_after = status.retry_after(limiter.now())
        logger.warning("login_rate_limited", client=client, retry_after=retry_after)
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many login attempts. Please try again later.",
                "retryAfter": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    if not body.username or not body.password:
        return JSONResponse(
            status_code=400,
            content={"error": "Username and password are required"},
        )

    try:
        is_valid = credentials.validate(body.username, body.password)
    except MisconfiguredAuthError as e:
        logger.error("login_misconfigured", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Authentication service temporarily unavailable"},
        )

    if not is_valid:
        limiter.increment(client)
        logger.warning("login_failed", client=client, remaining=max(0, status.remaining - 1))
        return JSONResponse(
            status_code=401,
            content={"error": "Invalid credentials"},
        )

    limiter.reset(client)
    token = sessions.create_session(body.username)

    response = JSONResponse(content={"success": True})
    set_session_cookie(
        response,
        token,
        secure=settings.is_production,
        max_age=sessions.duration_seconds,
    )
    logger.info("login_succeeded", client=client, username=body.username)
    return response


@router.post("/logout", response_model=SuccessResponse, summary="Log out")
def logout() -> JSONResponse:
    """Clear the session cookie.

    The token itself stays valid until it expires.
    """
    response = JSONResponse(content={"success": True})
    clear_session_cookie(response)
    return response
