from __future__ import annotations


class BemyguideError(Exception):
    """Base class for errors the request pipeline knows how to report."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BemyguideError):
    status_code = 400


class AuthError(BemyguideError):
    status_code = 401


class RateLimitError(BemyguideError):
    status_code = 429

    def __init__(self, retry_after: int, headers: dict[str, str] | None = None) -> None:
        super().__init__(f"Rate limit exceeded. Try again in {retry_after} seconds.")
        self.retry_after = retry_after
        self.headers = dict(headers or {})


class UpstreamError(BemyguideError):
    """The LLM call failed or returned something we could not use.

    ``message`` is for logs only; clients always get the generic text.
    """

    status_code = 500


class StoreError(Exception):
    """The rate-limit store could not be read or written."""
