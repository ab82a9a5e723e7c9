"""In-memory fixed-window rate limiting.

Counters live in process memory, so limits are per API worker. That is enough
to slow down credential stuffing against the auth endpoints; a shared store
(Redis) would be needed for a strict global limit across replicas.

Usage in a route:

    @router.post("/auth/login", dependencies=[Depends(rate_limited(RATE_LIMITS["auth"], "auth"))])
"""

import logging
import math
import threading
import time
from dataclasses import dataclass

from fastapi import HTTPException, Request

from .settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    remaining: int
    reset_at: float  # epoch seconds


RATE_LIMITS = {
    # login, signup
    "auth": RateLimitConfig(max_requests=5, window_seconds=15 * 60),
    # password reset emails
    "email": RateLimitConfig(max_requests=3, window_seconds=60 * 60),
    "api_write": RateLimitConfig(max_requests=30, window_seconds=60),
    "api_read": RateLimitConfig(max_requests=100, window_seconds=60),
}


class RateLimiter:
    """Fixed-window counter keyed by an arbitrary identifier."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._entries: dict[str, list] = {}  # identifier -> [count, reset_at]
        self._lock = threading.Lock()

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._purge(now)
            entry = self._entries.get(identifier)

            if entry is None or now > entry[1]:
                reset_at = now + config.window_seconds
                self._entries[identifier] = [1, reset_at]
                return RateLimitResult(True, config.max_requests - 1, reset_at)

            if entry[0] >= config.max_requests:
                return RateLimitResult(False, 0, entry[1])

            entry[0] += 1
            return RateLimitResult(True, config.max_requests - entry[0], entry[1])

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._entries.items() if now > reset_at]
        for key in expired:
            del self._entries[key]


limiter = RateLimiter()


def client_identifier(request: Request) -> str:
    """Best-effort client address, honouring reverse-proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limited(config: RateLimitConfig, scope: str):
    """Build a FastAPI dependency enforcing `config` per client and scope."""

    def dependency(request: Request) -> None:
        if not get_settings().rate_limit_enabled:
            return
        identifier = f"{scope}:{client_identifier(request)}"
        result = limiter.check(identifier, config)
        if result.success:
            return

        retry_after = max(1, math.ceil(result.reset_at - time.time()))
        logger.warning("rate limit exceeded", extra={"scope": scope, "client": identifier})
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please try again later.",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(config.max_requests),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(result.reset_at)),
            },
        )

    return dependency
