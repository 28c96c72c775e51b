"""Authentication: credentials, sessions and login rate limiting."""

from cms.auth.credentials import CredentialChecker, timing_safe_equal
from cms.auth.rate_limit import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitStatus,
    run_rate_limit_sweeper,
)
from cms.auth.session import (
    SESSION_COOKIE_NAME,
    SessionManager,
    SessionPayload,
    clear_session_cookie,
    set_session_cookie,
)

__all__ = [
    "SESSION_COOKIE_NAME",
    "CredentialChecker",
    "InMemoryRateLimiter",
    "RateLimitStatus",
    "RateLimiter",
    "SessionManager",
    "SessionPayload",
    "clear_session_cookie",
    "run_rate_limit_sweeper",
    "set_session_cookie",
    "timing_safe_equal",
]
