"""
Per-device rate limiting.

Responsibilities:
- Count requests per device id inside a fixed window.
- Persist windows in a shared key-value store (Redis, or in-process memory).
- Report limit / remaining / reset metadata for response headers.
"""
