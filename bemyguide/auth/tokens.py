from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import jwt

from ..errors import AuthError, ValidationError
from .config import DEFAULT_TOKEN_CONFIG, TokenConfig

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "iat", "exp"]


@dataclass(frozen=True)
class IssuedToken:
    token: str
    subject: str
    issued_at: int
    expires_at: int


def issue_token(
    device_id: str,
    config: TokenConfig = DEFAULT_TOKEN_CONFIG,
    now: float | None = None,
) -> IssuedToken:
    """Sign a token for ``device_id`` that expires ``config.ttl_seconds`` from now."""
    if not isinstance(device_id, str) or not device_id:
        raise ValidationError("deviceId is required")

    issued_at = int(time.time() if now is None else now)
    expires_at = issued_at + config.ttl_seconds
    payload = {"sub": device_id, "iat": issued_at, "exp": expires_at}
    token = jwt.encode(payload, config.secret, algorithm=config.algorithm)
    return IssuedToken(token=token, subject=device_id, issued_at=issued_at, expires_at=expires_at)


def verify_token(
    token: str,
    config: TokenConfig = DEFAULT_TOKEN_CONFIG,
    now: float | None = None,
) -> str:
    """
    Check signature and expiry and return the token subject.

    Expiry is compared against ``now`` rather than PyJWT's own clock so the
    check follows the same time source as issuance.
    """
    try:
        payload = jwt.decode(
            token,
            config.secret,
            algorithms=[config.algorithm],
            options={"require": _REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
        )
    except jwt.PyJWTError as exc:
        logger.debug("Token rejected: %s", exc)
        raise AuthError("Invalid or expired token") from exc

    subject = payload.get("sub")
    exp = payload.get("exp")
    if not isinstance(subject, str) or not subject:
        raise AuthError("Invalid or expired token")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        raise AuthError("Invalid or expired token")

    current = time.time() if now is None else now
    if current >= exp:
        logger.debug("Token for %s expired at %s", subject, exp)
        raise AuthError("Invalid or expired token")

    return subject
