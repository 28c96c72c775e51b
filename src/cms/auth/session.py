"""Stateless signed session tokens carried in a cookie."""

import time
from collections.abc import Callable

import jwt
from pydantic import BaseModel, ValidationError
from starlette.responses import Response

from cms.errors import MisconfiguredSecretError

SESSION_COOKIE_NAME = "cms-session"
SESSION_DURATION = 60 * 60 * 24 * 7  # 7 days in seconds
MIN_SECRET_LENGTH = 32
ALGORITHM = "HS256"


class SessionPayload(BaseModel):
    """Decoded session token claims."""

    username: str
    exp: int


class SessionManager:
    """Issues and verifies HS256-signed session tokens.

    There is no server-side store, so a token stays valid until it expires.
    """

    def __init__(
        self,
        secret: str,
        duration_seconds: int = SESSION_DURATION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize session manager.

        Args:
            secret: Signing secret, at least 32 bytes of UTF-8.
            duration_seconds: Token lifetime.
            clock: Source of the current Unix time.

        Raises:
            MisconfiguredSecretError: If the secret is missing or too short.
        """
        if not secret or len(secret.encode("utf-8")) < MIN_SECRET_LENGTH:
            raise MisconfiguredSecretError(
                f"CMS_SESSION_SECRET must be at least {MIN_SECRET_LENGTH} bytes"
            )
        self._secret = secret
        self.duration_seconds = duration_seconds
        self._clock = clock

    def create_session(self, username: str) -> str:
        """Create a signed token for ``username``."""
        payload = {
            "username": username,
            "exp": int(self._clock()) + self.duration_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify_session(self, token: str | None) -> SessionPayload | None:
        """Verify a token's signature, expiry and shape.

        Returns:
            The decoded payload, or None for any missing, malformed,
            tampered or expired token.
        """
        if not token:
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"], "verify_exp": False},
            )
        except jwt.InvalidTokenError:
            return None

        try:
            payload = SessionPayload.model_validate(claims, strict=True)
        except ValidationError:
            return None

        if payload.exp <= self._clock():
            return None

        return payload


def set_session_cookie(
    response: Response,
    token: str,
    secure: bool,
    max_age: int = SESSION_DURATION,
) -> None:
    """Attach the session cookie to ``response``."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
