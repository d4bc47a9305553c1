from __future__ import annotations

from fastapi import Request

from ..errors import AuthError
from .tokens import verify_token

_BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str:
    """Return the raw token from ``Authorization: Bearer <token>``."""
    header = request.headers.get("Authorization", "")
    if not header.startswith(_BEARER_PREFIX):
        raise AuthError("Missing or invalid Authorization header")
    token = header[len(_BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Missing or invalid Authorization header")
    return token


def require_device(request: Request) -> str:
    """Raise 401 unless the request carries a valid token; return its device id."""
    return verify_token(bearer_token(request), request.app.state.token_config)
