from __future__ import annotations

import json
import math
from dataclasses import dataclass

from ..errors import StoreError


@dataclass(frozen=True)
class RateWindow:
    count: int
    reset_at: float

    def dumps(self) -> str:
        return json.dumps({"count": self.count, "resetAt": self.reset_at})

    @classmethod
    def loads(cls, raw: str) -> "RateWindow":
        try:
            data = json.loads(raw)
            count = int(data["count"])
            reset_at = float(data["resetAt"])
        except (ValueError, TypeError, KeyError, OverflowError) as exc:
            raise StoreError(f"Unreadable rate window: {raw!r}") from exc
        if not math.isfinite(reset_at):
            raise StoreError(f"Unreadable rate window: {raw!r}")
        return cls(count=max(count, 0), reset_at=reset_at)


def advance(
    window: RateWindow | None,
    now: float,
    window_seconds: int,
    limit: int,
) -> tuple[RateWindow, bool]:
    """
    Apply one request to ``window``.

    Returns the window to keep and whether the request is allowed. A missing
    or elapsed window is replaced with a fresh one; a full window is returned
    unchanged and must not be written back.
    """
    if window is None or now >= window.reset_at:
        return RateWindow(count=1, reset_at=now + window_seconds), True
    if window.count >= limit:
        return window, False
    return RateWindow(count=window.count + 1, reset_at=window.reset_at), True


def ttl_for(window: RateWindow, now: float, window_seconds: int) -> int:
    """Seconds the stored window should live: the rest of its window, at least 1."""
    return max(min(math.ceil(window.reset_at - now), window_seconds), 1)
