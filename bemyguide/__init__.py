"""
bemyguide: nearby place recommendations for anonymous devices.

Responsibilities:
- Issue and verify anonymous bearer tokens.
- Rate-limit each device over a fixed window.
- Turn LLM suggestions into a strict recommendation schema.
"""
