from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from ..locations.errors import (
    AddressNotFoundError,
    GeocodingNotConfiguredError,
    GeocodingTransportError,
    UpstreamUnavailableError,
)
from ..locations.models import Coordinate
from .config import DEFAULT_GEOCODING_CONFIG, GeocodingConfig

logger = logging.getLogger(__name__)


def geocode_address(
    address: str,
    config: GeocodingConfig = DEFAULT_GEOCODING_CONFIG,
) -> Coordinate:
    """
    Resolve ``address`` with the Google Geocoding API.

    Raises ``GeocodingNotConfiguredError`` without an API key, ``ValueError``
    for a blank address, ``AddressNotFoundError`` when Google has no match and
    ``GeocodingTransportError`` for network or HTTP failures.
    """
    if not config.enabled or not config.api_key:
        raise GeocodingNotConfiguredError(
            "Geocoding API key is not configured in environment variables."
        )
    if not address or not address.strip():
        raise ValueError("Please provide an 'address' to geocode.")

    try:
        response = requests.get(
            config.api_url,
            params={"address": address, "key": config.api_key},
            timeout=config.timeout,
        )
    except requests.RequestException as exc:
        raise GeocodingTransportError(f"Failed to geocode address: {exc}") from exc

    if not response.ok:
        try:
            detail = response.json().get("error_message") or response.reason
        except ValueError:
            detail = response.reason
        raise GeocodingTransportError(f"Geocoding API error: {response.status_code} - {detail}")

    try:
        data = response.json()
    except ValueError as exc:
        raise GeocodingTransportError(f"Failed to geocode address: {exc}") from exc

    results = data.get("results") or []
    if data.get("status") != "OK" or not results:
        raise AddressNotFoundError("Address not found.")

    try:
        location = results[0]["geometry"]["location"]
        coord = Coordinate(lat=float(location["lat"]), lng=float(location["lng"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingTransportError(f"Unexpected geocoding response: {exc}") from exc
    logger.info("Input: (%s,%s)", coord.lat, coord.lng)
    return coord


def make_geocoder(
    config: GeocodingConfig = DEFAULT_GEOCODING_CONFIG,
) -> Callable[[str], Optional[Coordinate]]:
    """Return a lookup for the filter engine that yields ``None`` on any failure."""

    def _geocode(address: str) -> Optional[Coordinate]:
        try:
            return geocode_address(address, config)
        except (UpstreamUnavailableError, ValueError):
            logger.warning("Error geocoding address %r", address, exc_info=True)
            return None

    return _geocode
