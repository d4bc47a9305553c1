from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from .config import DEFAULT_RATE_LIMIT_CONFIG, RateLimitConfig
from .store import AtomicWindowStore, KeyValueStore
from .window import RateWindow, advance, ttl_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int | None = None

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """
    Fixed-window request counter per identity.

    When the store implements ``incr_window`` (Redis via a Lua script, the
    in-process store trivially) each request is applied atomically. Plain
    get/put stores fall back to one read and at most one write; that path is
    not atomic, so two concurrent calls for the same identity can both read
    count N and both write N+1, and the store may under-count bursts.

    Store failures surface as ``StoreError``; callers decide whether to fail
    open.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.config = config
        self._clock = clock

    async def _read_modify_write(self, key: str, now: float) -> tuple[RateWindow, bool]:
        raw = await self.store.get(key)
        current = RateWindow.loads(raw) if raw is not None else None
        window, allowed = advance(current, now, self.config.window_seconds, self.config.max_requests)
        if allowed:
            await self.store.put(key, window.dumps(), ttl_for(window, now, self.config.window_seconds))
        return window, allowed

    async def admit(self, identity: str) -> RateDecision:
        key = self.config.key_for(identity)
        now = self._clock()
        limit = self.config.max_requests

        if isinstance(self.store, AtomicWindowStore):
            window, allowed = await self.store.incr_window(key, now, self.config.window_seconds, limit)
        else:
            window, allowed = await self._read_modify_write(key, now)

        if not allowed:
            retry_after = max(math.ceil(window.reset_at - now), 1)
            logger.info("Rate limit hit for %s, retry in %ss", identity, retry_after)
            return RateDecision(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_at=window.reset_at,
                retry_after=retry_after,
            )

        return RateDecision(
            allowed=True,
            limit=limit,
            remaining=max(limit - window.count, 0),
            reset_at=window.reset_at,
        )
