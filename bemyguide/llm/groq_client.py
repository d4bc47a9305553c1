from __future__ import annotations

import logging
from typing import Any

from groq import AsyncGroq

from ..errors import UpstreamError
from ..recommendations.models import Category, LocationQuery
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

_CATEGORIES = ", ".join(f"'{c.value}'" for c in Category)

SYSTEM_PROMPT = (
    "You are a local guide assistant named 'bemyguide'. "
    "Your task is to find relevant places for the user based on their query "
    "and location.\n\n"
    "ALWAYS respond with a valid JSON object containing a single key "
    "'suggestions' which is an array of places, in this exact format:\n"
    '{"suggestions": [{"name": "<place name>", "description": "<one sentence>", '
    '"category": "<category>", "distance_km": <number>}]}\n'
    "The 'description' should be a concise, one-sentence summary. "
    "The 'distance_km' should be the approximate distance in kilometers from "
    "the user's location to the place. "
    f"The 'category' must be one of: {_CATEGORIES}. "
    "Do not include any text outside of the JSON object."
)


def build_user_message(query: LocationQuery) -> str:
    return (
        f"User query: '{query.query}'. "
        f"My current location is latitude {query.latitude} "
        f"and longitude {query.longitude}."
    )


async def fetch_suggestions(
    query: LocationQuery,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> Any:
    """
    Ask Groq for place suggestions and return the raw completion.

    The call is made once, bounded by ``config.timeout``. Any failure
    (missing key, timeout, API error) is raised as ``UpstreamError``.
    """
    if not config.api_key:
        raise UpstreamError("GROQ_API_KEY is not configured")

    try:
        async with AsyncGroq(api_key=config.api_key, timeout=config.timeout, max_retries=0) as client:
            return await client.chat.completions.create(
                model=config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_message(query)},
                ],
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                response_format={"type": "json_object"},
            )
    except Exception as exc:
        raise UpstreamError(f"Groq completion failed: {exc}") from exc
