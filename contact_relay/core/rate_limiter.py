"""
=============================================================================
CONTACT RELAY - RATE LIMITER MODULE
=============================================================================
Sliding-window rate limiting for the contact form, keyed by client identifier.

Features:
- Trailing 15 minute window, 5 submissions per client
- In-memory backend (default, per-process) or Redis backend (shared)
- Atomic prune-check-append per key on both backends
- Trusted-proxy validation for X-Forwarded-For

Usage:
    from contact_relay.core.rate_limiter import RateLimiter

    limiter = RateLimiter()
    if limiter.is_rate_limited(get_client_ip(request)):
        ...
=============================================================================
"""

import ipaddress
import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque, Dict, Iterable, List, Optional

import redis
from starlette.requests import Request

from contact_relay.core.config import Settings

logger = logging.getLogger(__name__)

# Limits
CONTACT_LIMIT = 5
CONTACT_WINDOW_SECONDS = 15 * 60

REDIS_KEY_PREFIX = "rl:contact:"


# =============================================================================
# BACKEND ABSTRACTION
# =============================================================================


class RateLimitBackend(ABC):
    """Storage for per-client request timestamps inside a trailing window."""

    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: float, now: float) -> bool:
        """Prune, then record ``now`` unless ``limit`` is reached.

        Returns True when the request was admitted (and recorded).
        """

    @abstractmethod
    def count(self, key: str, window_seconds: float, now: float) -> int:
        """Prune, then return the number of requests inside the window."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all state (for tests)."""

    @abstractmethod
    def stats(self) -> dict:
        """Return debugging stats."""


class InMemoryBackend(RateLimitBackend):
    """Thread-safe in-memory backend (single-instance only).

    Keys whose window has fully expired are never evicted, so memory grows
    with the number of distinct clients seen since start-up.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = defaultdict(deque)

    @staticmethod
    def _prune(window: Deque[float], window_start: float) -> None:
        while window and window[0] <= window_start:
            window.popleft()

    def hit(self, key: str, limit: int, window_seconds: float, now: float) -> bool:
        with self._lock:
            window = self._windows[key]
            self._prune(window, now - window_seconds)
            if len(window) >= limit:
                return False
            window.append(now)
            return True

    def count(self, key: str, window_seconds: float, now: float) -> int:
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            self._prune(window, now - window_seconds)
            return len(window)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "backend": "in_memory",
                "tracked_keys": len(self._windows),
                "counts": {key: len(window) for key, window in self._windows.items()},
            }


class RedisBackend(RateLimitBackend):
    """Redis sorted-set backend for multi-instance deployments.

    Each key holds one member per admitted request, scored by its timestamp.
    The count-then-append runs inside a WATCH/MULTI transaction, so two
    instances racing on one client cannot both pass the final slot.
    """

    def __init__(self, redis_client, prefix: str = REDIS_KEY_PREFIX) -> None:  # type: ignore[type-arg]
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def hit(self, key: str, limit: int, window_seconds: float, now: float) -> bool:
        redis_key = self._key(key)
        window_start = now - window_seconds

        def _attempt(pipe) -> bool:
            current = pipe.zcount(redis_key, f"({window_start}", "+inf")
            pipe.multi()
            pipe.zremrangebyscore(redis_key, "-inf", window_start)
            if current >= limit:
                return False
            pipe.zadd(redis_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.expire(redis_key, int(window_seconds) + 1)
            return True

        return self._redis.transaction(_attempt, redis_key, value_from_callable=True)

    def count(self, key: str, window_seconds: float, now: float) -> int:
        redis_key = self._key(key)
        window_start = now - window_seconds
        pipe = self._redis.pipeline(transaction=True)
        pipe.zremrangebyscore(redis_key, "-inf", window_start)
        pipe.zcard(redis_key)
        _, current = pipe.execute()
        return int(current)

    def reset(self) -> None:
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match=f"{self._prefix}*", count=500)
            if keys:
                self._redis.delete(*keys)
            if cursor == 0:
                break

    def stats(self) -> dict:
        counts = {}
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match=f"{self._prefix}*", count=500)
            for k in keys:
                key_str = k if isinstance(k, str) else k.decode()
                counts[key_str] = int(self._redis.zcard(k))
            if cursor == 0:
                break
        return {"backend": "redis", "counts": counts}


# =============================================================================
# RATE LIMITER
# =============================================================================


class RateLimiter:
    """Caps requests per client identifier over a trailing window."""

    def __init__(
        self,
        backend: Optional[RateLimitBackend] = None,
        limit: int = CONTACT_LIMIT,
        window_seconds: float = CONTACT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend or InMemoryBackend()
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    @property
    def retry_after_seconds(self) -> int:
        return int(self.window_seconds)

    def is_rate_limited(self, identifier: str) -> bool:
        """Return True if ``identifier`` is over the cap; otherwise record this request."""
        admitted = self.backend.hit(
            identifier, self.limit, self.window_seconds, self._clock()
        )
        return not admitted

    def get_remaining_requests(self, identifier: str) -> int:
        """Requests ``identifier`` may still make in the current window. Records nothing."""
        used = self.backend.count(identifier, self.window_seconds, self._clock())
        return max(0, self.limit - used)

    def reset(self) -> None:
        self.backend.reset()

    def stats(self) -> dict:
        stats = self.backend.stats()
        stats.update({"limit": self.limit, "window_seconds": self.window_seconds})
        return stats


def build_rate_limiter(config: Settings) -> RateLimiter:
    """Use Redis when RATE_LIMIT_REDIS_URL is reachable, in-memory otherwise."""
    if not config.RATE_LIMIT_REDIS_URL:
        return RateLimiter(InMemoryBackend())

    try:
        client = redis.Redis.from_url(
            config.RATE_LIMIT_REDIS_URL, decode_responses=True, socket_connect_timeout=2
        )
        client.ping()
    except redis.RedisError as exc:
        logger.warning(
            "Redis unavailable for rate limiter, using in-memory fallback: %s", exc
        )
        return RateLimiter(InMemoryBackend())

    logger.info("Rate limiter using Redis backend")
    return RateLimiter(RedisBackend(client))


# =============================================================================
# IP EXTRACTION
# =============================================================================


def parse_trusted_networks(
    entries: Iterable[str],
) -> List[ipaddress.IPv4Network | ipaddress.IPv6Network]:
    """Parse TRUSTED_PROXIES entries into network objects, skipping invalid ones."""
    nets = []
    for entry in entries:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    return nets


def _is_trusted_proxy(
    ip_str: str, networks: List[ipaddress.IPv4Network | ipaddress.IPv6Network]
) -> bool:
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in networks)


def get_client_ip(
    request: Request,
    trusted_networks: Optional[List[ipaddress.IPv4Network | ipaddress.IPv6Network]] = None,
) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"
    networks = trusted_networks or []

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip, networks):
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        # Rightmost untrusted hop is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip, networks):
                return ip
        if parts:
            return parts[0]

    return direct_ip
