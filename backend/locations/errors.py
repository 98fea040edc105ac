from __future__ import annotations


class LocationsError(Exception):
    """Base class for voting-location errors."""


class MissingCoordinateError(LocationsError, ValueError):
    """A distance was requested with one or more coordinates absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"All input coordinates must be defined (missing: {', '.join(missing)})"
        )


class UpstreamUnavailableError(LocationsError):
    """The record source or the geocoding service could not serve a request."""


class RecordSourceError(UpstreamUnavailableError):
    pass


class RecordSourceNotConfiguredError(RecordSourceError):
    pass


class GeocodingError(UpstreamUnavailableError):
    pass


class GeocodingNotConfiguredError(GeocodingError):
    pass


class AddressNotFoundError(GeocodingError):
    pass


class GeocodingTransportError(GeocodingError):
    pass


class StaleRequestError(LocationsError):
    """A newer filter request was issued while this one was in flight."""

    def __init__(self, token: int, current: int) -> None:
        self.token = token
        self.current = current
        super().__init__(f"Request {token} superseded by request {current}")
