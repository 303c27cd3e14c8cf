"""
Per-client admission control for the contact endpoint.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Admitted:
    limit: int
    remaining: int
    reset_after: int

    @property
    def allowed(self) -> bool:
        return True

    def headers(self) -> Dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


@dataclass(frozen=True)
class Denied:
    limit: int
    retry_after: int

    @property
    def allowed(self) -> bool:
        return False

    def headers(self) -> Dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(self.retry_after),
            "Retry-After": str(self.retry_after),
        }


RateLimitDecision = Union[Admitted, Denied]


class WindowCounter:
    """
    Request counter for one identity.

    The window starts at the first request after the previous one lapsed.
    """

    def __init__(self, started_at: float) -> None:
        self.started_at = started_at
        self.count = 0
        self.lock = asyncio.Lock()

    def expired(self, now: float, window_seconds: float) -> bool:
        return now - self.started_at >= window_seconds

    def seconds_until_reset(self, now: float, window_seconds: float) -> int:
        return max(1, math.ceil(self.started_at + window_seconds - now))


class FixedWindowRateLimiter:
    """
    Fixed-window limiter keyed by client identity.

    Windows are anchored per identity, not to a global clock tick. Entries are
    never evicted; a lapsed window is reset by that identity's next request.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_seconds: float = 60,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock or time.monotonic
        self.counters: Dict[str, WindowCounter] = {}

    def _counter_for(self, identity: str) -> WindowCounter:
        counter = self.counters.get(identity)
        if counter is None:
            counter = WindowCounter(started_at=self.clock())
            self.counters[identity] = counter
        return counter

    async def check(self, identity: str) -> RateLimitDecision:
        """
        Count one request for identity and decide whether it may proceed.

        Denied requests do not extend the window.
        """
        counter = self._counter_for(identity)

        async with counter.lock:
            now = self.clock()
            if counter.expired(now, self.window_seconds):
                counter.started_at = now
                counter.count = 0

            if counter.count >= self.max_requests:
                retry_after = counter.seconds_until_reset(now, self.window_seconds)
                logger.warning(
                    "Rate limit exceeded",
                    identity=identity,
                    retry_after=retry_after,
                    limit=self.max_requests,
                )
                return Denied(limit=self.max_requests, retry_after=retry_after)

            counter.count += 1
            remaining = self.max_requests - counter.count
            logger.debug(
                "Rate limit check passed",
                identity=identity,
                remaining=remaining,
            )
            return Admitted(
                limit=self.max_requests,
                remaining=remaining,
                reset_after=counter.seconds_until_reset(now, self.window_seconds),
            )

    def reset(self) -> None:
        """Forget all identities."""
        self.counters.clear()
