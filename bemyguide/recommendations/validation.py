from __future__ import annotations

import math
from typing import Any

from ..errors import ValidationError
from .models import LocationQuery

QUERY_REQUIRED = "Query is required and must be a string"
COORDINATES_REQUIRED = "Valid latitude and longitude are required"
LATITUDE_RANGE = "Latitude must be between -90 and 90"
LONGITUDE_RANGE = "Longitude must be between -180 and 180"


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are not coordinates.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers past float range are still numbers; the range check rejects them.
        return True


def validate_location_query(payload: Any) -> LocationQuery:
    """Check a raw request body and return it as a ``LocationQuery``.

    Checks run in a fixed order and stop at the first failure, so the
    message always names the first offending field.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")

    query = payload.get("query")
    if not isinstance(query, str) or not query:
        raise ValidationError(QUERY_REQUIRED)

    latitude = payload.get("latitude")
    longitude = payload.get("longitude")
    if not _is_number(latitude) or not _is_number(longitude):
        raise ValidationError(COORDINATES_REQUIRED)

    if not -90 <= latitude <= 90:
        raise ValidationError(LATITUDE_RANGE)
    if not -180 <= longitude <= 180:
        raise ValidationError(LONGITUDE_RANGE)

    return LocationQuery(query=query, latitude=float(latitude), longitude=float(longitude))
