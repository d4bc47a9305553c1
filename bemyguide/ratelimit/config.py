from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int = 30
    window_seconds: int = 60 * 60
    key_prefix: str = "rate_limit:"
    # Empty means a per-process MemoryStore.
    redis_url: str = os.getenv("REDIS_URL", "")

    def key_for(self, identity: str) -> str:
        return f"{self.key_prefix}{identity}"


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig()
