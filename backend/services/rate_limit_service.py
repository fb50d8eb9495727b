from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    endpoint: str
    limit: int
    window_seconds: int


SWEEP_INTERVAL_SECONDS = 60


class InMemoryRateLimiter:
    def __init__(self, clock=time.time) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._expires: dict[str, float] = {}
        self._clock = clock
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        # Buckets whose newest hit has left its window are dropped.
        stale = [key for key, expires in self._expires.items() if expires <= now]
        for key in stale:
            self._hits.pop(key, None)
            self._expires.pop(key, None)
        self._last_sweep = now

    def check(self, *, key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
        now = self._clock()
        window = max(int(window_seconds), 1)
        max_hits = max(int(limit), 1)
        with self._lock:
            if now - self._last_sweep >= SWEEP_INTERVAL_SECONDS:
                self._sweep(now)
            bucket = self._hits.setdefault(key, deque())
            cutoff = now - window
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= max_hits:
                retry_after = int(max(bucket[0] + window - now, 1))
                return False, retry_after, 0
            bucket.append(now)
            self._expires[key] = now + window
            remaining = max(max_hits - len(bucket), 0)
            return True, 0, remaining

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._expires.clear()


_RATE_LIMITER = InMemoryRateLimiter()


def _hash_scope(scope_key: str) -> str:
    raw = (scope_key or "").encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:24]


def enforce_rate_limit(
    *,
    rule: RateLimitRule,
    scope_key: str,
    ip_address: str | None = None,
) -> tuple[bool, int]:
    allowed, retry_after, _remaining = _RATE_LIMITER.check(
        key=f"{rule.endpoint}:{scope_key}",
        limit=rule.limit,
        window_seconds=rule.window_seconds,
    )
    if not allowed:
        logger.warning(
            "Rate limit hit on %s (scope=%s ip=%s limit=%s/%ss retry_after=%ss)",
            rule.endpoint,
            _hash_scope(scope_key),
            (ip_address or "").strip()[:128] or "unknown",
            rule.limit,
            rule.window_seconds,
            retry_after,
        )
    return allowed, retry_after


def reset_rate_limits() -> None:
    _RATE_LIMITER.reset()
