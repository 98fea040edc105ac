from __future__ import annotations

import logging
import math

from .errors import MissingCoordinateError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6378.0


def haversine(
    lng1: float | None,
    lat1: float | None,
    lng2: float | None,
    lat2: float | None,
    radius: float = EARTH_RADIUS_KM,
) -> float:
    """
    Great-circle distance between two points on a sphere of ``radius`` km.

    Arguments are taken as radians; no unit conversion is applied.
    Raises ``MissingCoordinateError`` if any coordinate is ``None`` or not a
    finite number.
    """
    named = {"lng1": lng1, "lat1": lat1, "lng2": lng2, "lat2": lat2}
    missing = [
        name for name, value in named.items()
        if value is None or not math.isfinite(value)
    ]
    if missing:
        logger.error("Undefined input(s): %s", ", ".join(missing))
        raise MissingCoordinateError(missing)

    delta_lambda = lng2 - lng1
    delta_phi = lat2 - lat1

    num = 1 - math.cos(delta_phi) + math.cos(lat1) * math.cos(lat2) * (1 - math.cos(delta_lambda))
    # Rounding can push the ratio a hair outside asin's domain
    ratio = min(1.0, max(0.0, num / 2))
    return 2 * math.asin(math.sqrt(ratio)) * radius
