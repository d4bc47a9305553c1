"""
Key-value stores backing the rate limiter.

Every store offers ``get`` and ``put`` with a per-key TTL. Stores that can
also apply a whole window update in one step implement ``incr_window``
(see ``AtomicWindowStore``); the limiter prefers that path and only falls
back to a racy read-modify-write for plain get/put stores.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, runtime_checkable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..errors import StoreError
from .window import RateWindow, advance, ttl_for

logger = logging.getLogger(__name__)

# KEYS[1] window key; ARGV now, window seconds, limit.
# Same rules as window.advance, run inside Redis so no other client can
# interleave between the read and the write.
_INCR_WINDOW_LUA = """
local raw = redis.call('GET', KEYS[1])
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local count, reset_at
if raw then
  local ok, data = pcall(cjson.decode, raw)
  if not ok or type(data) ~= 'table' then
    return redis.error_reply('unreadable rate window')
  end
  count = tonumber(data['count'])
  reset_at = tonumber(data['resetAt'])
  if count == nil or reset_at == nil or reset_at ~= reset_at
      or reset_at == math.huge or reset_at == -math.huge then
    return redis.error_reply('unreadable rate window')
  end
end
if not raw or now >= reset_at then
  count = 1
  reset_at = now + window
  redis.call('SET', KEYS[1], cjson.encode({count = count, resetAt = reset_at}), 'EX', window)
  return {count, tostring(reset_at), 1}
end
if count >= limit then
  return {count, tostring(reset_at), 0}
end
count = count + 1
local ttl = math.max(math.min(math.ceil(reset_at - now), window), 1)
redis.call('SET', KEYS[1], cjson.encode({count = count, resetAt = reset_at}), 'EX', ttl)
return {count, tostring(reset_at), 1}
"""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def close(self) -> None: ...


@runtime_checkable
class AtomicWindowStore(KeyValueStore, Protocol):
    async def incr_window(
        self, key: str, now: float, window_seconds: int, limit: int
    ) -> tuple[RateWindow, bool]:
        """Apply one request to the window at ``key`` atomically.

        Returns the resulting window and whether the request is allowed.
        """
        ...


class MemoryStore:
    """In-process store with lazy expiry. Only shared within one worker."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, dict] = {}

    def _get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry and self._clock() < entry["expires_at"]:
            return entry["value"]
        if entry:
            del self._entries[key]
        return None

    def _put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise StoreError(f"TTL must be positive, got {ttl_seconds}")
        self._entries[key] = {"value": value, "expires_at": self._clock() + ttl_seconds}

    async def get(self, key: str) -> str | None:
        return self._get(key)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._put(key, value, ttl_seconds)

    async def incr_window(
        self, key: str, now: float, window_seconds: int, limit: int
    ) -> tuple[RateWindow, bool]:
        # No await between read and write, so no other task can interleave.
        raw = self._get(key)
        current = RateWindow.loads(raw) if raw is not None else None
        window, allowed = advance(current, now, window_seconds, limit)
        if allowed:
            self._put(key, window.dumps(), ttl_for(window, now, window_seconds))
        return window, allowed

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisStore:
    """Store backed by a Redis server; window updates run as one Lua script."""

    def __init__(self, redis_url: str, *, socket_timeout: float = 2.0) -> None:
        self.redis_url = redis_url
        self.client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        self._incr_window = self.client.register_script(_INCR_WINDOW_LUA)

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except RedisError as exc:
            raise StoreError(f"Redis GET failed for {key!r}: {exc}") from exc

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise StoreError(f"Redis SET failed for {key!r}: {exc}") from exc

    async def incr_window(
        self, key: str, now: float, window_seconds: int, limit: int
    ) -> tuple[RateWindow, bool]:
        try:
            reply = await self._incr_window(keys=[key], args=[repr(float(now)), window_seconds, limit])
        except RedisError as exc:
            raise StoreError(f"Redis window update failed for {key!r}: {exc}") from exc
        try:
            count, reset_at, allowed = reply
            window = RateWindow(count=int(count), reset_at=float(reset_at))
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Unexpected window script reply for {key!r}: {reply!r}") from exc
        return window, bool(int(allowed))

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except RedisError:
            logger.warning("Error closing Redis client for %s", self.redis_url, exc_info=True)
