"""Per-provider sliding-window request limiter.

Each provider keeps two trailing windows of request timestamps (one minute,
one hour). Windows are pruned lazily on every call, so there is no background
cleanup task.
"""
from __future__ import annotations

import time
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Callable

from creative_studio.schemas.provider import ProviderConfig

MINUTE_WINDOW = 60.0
HOUR_WINDOW = 3600.0


class RateLimiter:
    """Sliding-window limiter keyed by provider name.

    ``can_make_request`` and ``record_request`` are advisory and independent,
    mirroring how callers historically used them. ``try_acquire`` performs the
    check and the record as a single step and is what the provider service uses.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._minute: dict[str, deque[float]] = defaultdict(deque)
        self._hour: dict[str, deque[float]] = defaultdict(deque)

    def can_make_request(self, provider: str, config: ProviderConfig) -> bool:
        now = self._clock()
        self._prune(provider, now)
        return (
            len(self._minute[provider]) < config.rate_limit.requests_per_minute
            and len(self._hour[provider]) < config.rate_limit.requests_per_hour
        )

    def record_request(self, provider: str) -> None:
        now = self._clock()
        self._minute[provider].append(now)
        self._hour[provider].append(now)

    def try_acquire(self, provider: str, config: ProviderConfig) -> bool:
        """Record a request only if both windows have room. Returns whether it did."""
        if not self.can_make_request(provider, config):
            return False
        self.record_request(provider)
        return True

    def get_next_available_time(self, provider: str, config: ProviderConfig) -> datetime:
        """Earliest moment both windows have room again.

        A full window frees up when its oldest entry expires. A window with a
        zero limit never frees up, so it reports one window length from now.
        """
        now = self._clock()
        self._prune(provider, now)
        available = now
        for requests, limit, window in (
            (self._minute[provider], config.rate_limit.requests_per_minute, MINUTE_WINDOW),
            (self._hour[provider], config.rate_limit.requests_per_hour, HOUR_WINDOW),
        ):
            if len(requests) < limit:
                continue
            available = max(available, requests[0] + window if requests else now + window)
        return datetime.fromtimestamp(available, tz=timezone.utc)

    def usage(self, provider: str) -> dict[str, int]:
        self._prune(provider, self._clock())
        return {
            "last_minute": len(self._minute[provider]),
            "last_hour": len(self._hour[provider]),
        }

    def reset(self, provider: str | None = None) -> None:
        if provider is None:
            self._minute.clear()
            self._hour.clear()
        else:
            self._minute.pop(provider, None)
            self._hour.pop(provider, None)

    # ── Internal helpers ───────────────────────────────────────────────

    def _prune(self, provider: str, now: float) -> None:
        # Timestamps are appended in clock order, so expired ones sit at the left.
        minute = self._minute[provider]
        while minute and now - minute[0] >= MINUTE_WINDOW:
            minute.popleft()
        hour = self._hour[provider]
        while hour and now - hour[0] >= HOUR_WINDOW:
            hour.popleft()
