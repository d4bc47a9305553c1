"""
Turn whatever the LLM sent back into a list of ``PlaceRecommendation``.

The completion is first resolved into one of three payload variants:

- ``ParsedPayload``: the suggestions object already decoded
- ``TextPayload``: JSON text that still has to be decoded
- ``UnrecognizedPayload``: nothing we know how to read

Everything after that works on plain dicts, and each suggestion goes through
``coerce_suggestion`` so a sloppy item never breaks the whole response.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import quote_plus

from ..errors import UpstreamError
from .models import Category, PlaceRecommendation

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)
_CATEGORY_LOOKUP = {c.value.lower(): c for c in Category}


@dataclass(frozen=True)
class ParsedPayload:
    data: Any


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class UnrecognizedPayload:
    kind: str


Payload = Union[ParsedPayload, TextPayload, UnrecognizedPayload]


def _from_content(content: Any) -> Payload:
    if isinstance(content, str):
        return TextPayload(content)
    if isinstance(content, dict):
        return ParsedPayload(content)
    return UnrecognizedPayload(type(content).__name__)


def resolve_payload(raw: Any) -> Payload:
    """Classify an LLM response envelope. Never raises."""
    if isinstance(raw, str):
        return TextPayload(raw)

    if isinstance(raw, dict):
        if "suggestions" in raw:
            return ParsedPayload(raw)
        if "response" in raw:
            return _from_content(raw["response"])
        choices = raw.get("choices")
        if isinstance(choices, list) and choices:
            first = choices[0]
            message = first.get("message") if isinstance(first, dict) else None
            if isinstance(message, dict) and "content" in message:
                return _from_content(message["content"])
        return UnrecognizedPayload("dict")

    # SDK completion objects (groq / openai style)
    choices = getattr(raw, "choices", None)
    if isinstance(choices, list) and choices:
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if content is not None:
            return _from_content(content)

    return UnrecognizedPayload(type(raw).__name__)


def _decode(text: str) -> Any:
    stripped = text.strip()
    fenced = _FENCE_RE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise UpstreamError(f"LLM returned malformed JSON: {exc}") from exc


def maps_link(name: str) -> str:
    return MAPS_SEARCH_URL + quote_plus(name)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _category(value: Any) -> Category:
    if isinstance(value, str):
        return _CATEGORY_LOOKUP.get(value.strip().lower(), Category.other)
    return Category.other


def _distance(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        distance = float(value)
    except OverflowError:
        return None
    return distance if math.isfinite(distance) else None


def coerce_suggestion(item: dict[str, Any]) -> PlaceRecommendation:
    """
    Build a ``PlaceRecommendation`` from one raw suggestion.

    Field rules:
    - ``name`` / ``description``: kept when a string, otherwise ``""``
    - ``category``: case-insensitive match on ``Category``, otherwise Other
    - ``distance_km`` (or ``distanceKm``): kept when a finite number, otherwise None
    - ``google_maps_url``: always derived from the name
    """
    name = _text(item.get("name"))
    raw_distance = item.get("distance_km", item.get("distanceKm"))
    return PlaceRecommendation(
        name=name,
        description=_text(item.get("description")),
        category=_category(item.get("category")),
        distance_km=_distance(raw_distance),
        google_maps_url=maps_link(name),
    )


def normalize_response(raw: Any) -> list[PlaceRecommendation]:
    """Extract, decode and coerce an LLM response. Raises ``UpstreamError``."""
    payload = resolve_payload(raw)
    if isinstance(payload, UnrecognizedPayload):
        raise UpstreamError(f"Unexpected LLM response format: {payload.kind}")
    if isinstance(payload, TextPayload):
        data = _decode(payload.text)
    else:
        data = payload.data

    suggestions = data.get("suggestions") if isinstance(data, dict) else None
    if not isinstance(suggestions, list):
        raise UpstreamError("LLM response does not contain a valid suggestions array")

    results: list[PlaceRecommendation] = []
    for index, item in enumerate(suggestions):
        if not isinstance(item, dict):
            logger.warning("Skipping suggestion %d: expected object, got %s", index, type(item).__name__)
            continue
        results.append(coerce_suggestion(item))
    return results
