from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import re
from typing import Any

from .models import Coordinate

logger = logging.getLogger(__name__)

# Airtable's maps extension prefixes the payload with a status emoji
_LEADING_NON_BASE64 = re.compile(r"^[^A-Za-z0-9+/=]+")


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        # Integers beyond float range
        return False


def decode_geocode_cache(cache_str: str | None) -> Coordinate | None:
    """
    Decode the base64 geocode cache of a record into a coordinate.

    The payload is JSON of the form ``{"o": {"lat": ..., "lng": ...}, ...}``.
    Returns ``None`` on any failure; never raises.
    """
    if not isinstance(cache_str, str) or not cache_str.strip():
        return None

    cleaned = _LEADING_NON_BASE64.sub("", cache_str.strip())
    try:
        padded = cleaned + "=" * (-len(cleaned) % 4)
        raw = base64.b64decode(padded, validate=True)
        parsed = json.loads(raw)
    except (binascii.Error, ValueError) as exc:
        logger.error("Error decoding geocode cache: %s", exc)
        return None

    location = parsed.get("o") if isinstance(parsed, dict) else None
    if not isinstance(location, dict):
        location = {}
    lat, lng = location.get("lat"), location.get("lng")

    if _is_number(lat) and _is_number(lng):
        return Coordinate(lat=float(lat), lng=float(lng))

    logger.warning("Latitude or longitude missing in geocode cache: %s", parsed)
    return None
