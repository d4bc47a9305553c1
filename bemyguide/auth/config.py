from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

SEVEN_DAYS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class TokenConfig:
    secret: str = os.getenv("JWT_SECRET", "bemyguide-dev-secret-change-in-production")
    algorithm: str = "HS256"
    ttl_seconds: int = SEVEN_DAYS


DEFAULT_TOKEN_CONFIG = TokenConfig()
