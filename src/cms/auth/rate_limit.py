"""Fixed-window login rate limiting keyed by client identifier."""

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import structlog

logger = structlog.get_logger()

MAX_ATTEMPTS = 5
WINDOW_SECONDS = 15 * 60
SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class RateLimitStatus:
    """Result of a rate limit check.

    Attributes:
        is_limited: Whether the identifier has exhausted its attempts.
        remaining: Attempts left in the current window.
        reset_time: Unix timestamp at which the window expires.
    """

    is_limited: bool
    remaining: int
    reset_time: float

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets, at least 1."""
        return max(1, math.ceil(self.reset_time - now))


@dataclass
class RateLimitEntry:
    """Attempt count and window expiry for one identifier."""

    count: int
    reset_time: float


class RateLimiter(Protocol):
    """Store interface for login attempt bookkeeping."""

    def now(self) -> float: ...

    def check(self, identifier: str) -> RateLimitStatus: ...

    def increment(self, identifier: str) -> None: ...

    def reset(self, identifier: str) -> None: ...


class InMemoryRateLimiter:
    """Process-local rate limiter for single-instance deployments.

    Expired windows are replaced lazily on ``check`` and ``increment``;
    ``sweep`` only bounds memory. Concurrent increments for the same
    identifier are not serialized, so counts are approximate under races.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize rate limiter.

        Args:
            max_attempts: Failed attempts allowed per window.
            window_seconds: Window duration in seconds.
            clock: Source of the current Unix time.
        """
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> float:
        return self._clock()

    def check(self, identifier: str) -> RateLimitStatus:
        """Report whether ``identifier`` is currently limited.

        Starts a fresh window when none exists or the previous one expired.
        """
        now = self._clock()
        entry = self._entries.get(identifier)

        if entry is None or now > entry.reset_time:
            reset_time = now + self.window_seconds
            self._entries[identifier] = RateLimitEntry(count=0, reset_time=reset_time)
            return RateLimitStatus(
                is_limited=False,
                remaining=self.max_attempts,
                reset_time=reset_time,
            )

        return RateLimitStatus(
            is_limited=entry.count >= self.max_attempts,
            remaining=max(0, self.max_attempts - entry.count),
            reset_time=entry.reset_time,
        )

    def increment(self, identifier: str) -> None:
        """Record a failed attempt for ``identifier``."""
        now = self._clock()
        entry = self._entries.get(identifier)

        if entry is None or now > entry.reset_time:
            self._entries[identifier] = RateLimitEntry(
                count=1, reset_time=now + self.window_seconds
            )
        else:
            entry.count += 1

    def reset(self, identifier: str) -> None:
        """Forget ``identifier``, typically after a successful login."""
        self._entries.pop(identifier, None)

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
        for key in expired:
            del self._entries[key]
        return len(expired)


async def run_rate_limit_sweeper(
    limiter: InMemoryRateLimiter,
    interval: float = SWEEP_INTERVAL_SECONDS,
) -> None:
    """Periodically sweep expired rate limit entries.

    Runs as a long-lived asyncio task until cancelled.

    Args:
        limiter: Rate limiter to sweep.
        interval: Seconds between sweeps.
    """
    logger.info("rate_limit_sweeper_started", interval=interval)
    try:
        while True:
            await asyncio.sleep(interval)
            removed = limiter.sweep()
            if removed:
                logger.debug("rate_limit_swept", removed=removed, remaining=len(limiter))
    except asyncio.CancelledError:
        logger.info("rate_limit_sweeper_stopped")
        raise
