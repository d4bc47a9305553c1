from __future__ import annotations

import logging

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import fetch_suggestions
from .models import LocationQuery, PlaceRecommendation
from .normalizer import normalize_response

logger = logging.getLogger(__name__)


async def recommend(
    query: LocationQuery,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[PlaceRecommendation]:
    """Fetch suggestions for ``query`` and coerce them into recommendations.

    Two identical queries can return different places; the model is not
    deterministic even at low temperature.
    """
    raw = await fetch_suggestions(query, config)
    places = normalize_response(raw)
    logger.info("Returning %d recommendations for %r", len(places), query.query)
    return places
