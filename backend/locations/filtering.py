from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd

from .distance import haversine
from .errors import MissingCoordinateError, UpstreamUnavailableError
from .geocode_cache import decode_geocode_cache
from .models import (
    START_TIME,
    CategoryFilter,
    Coordinate,
    FilterCriteria,
    FilterResult,
    ProximityMode,
    VotingRecord,
)
from .sequencing import RequestSequencer

logger = logging.getLogger(__name__)

MAX_PROXIMITY_RESULTS = 10

Geocoder = Callable[[str], Optional[Coordinate]]


def _to_frame(records: list[VotingRecord]) -> pd.DataFrame:
    """Build a positional frame of the columns the filter stages read."""
    index = pd.RangeIndex(len(records))
    starts = pd.Series([r.fields.get(START_TIME) for r in records], index=index, dtype=object)
    zips = pd.Series([r.zip_code for r in records], index=index, dtype=object)
    return pd.DataFrame(
        {
            "borough": pd.Series([r.borough for r in records], index=index, dtype=object),
            "is_event": pd.Series([r.is_event for r in records], index=index, dtype=bool),
            "starts_at": pd.to_datetime(starts, utc=True, errors="coerce", format="ISO8601"),
            "zip_code": pd.to_numeric(zips, errors="coerce").fillna(0),
            "geocode_cache": pd.Series([r.geocode_cache for r in records], index=index, dtype=object),
        },
        index=index,
    )


def _filter_date_range(frame: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    start = pd.Timestamp(criteria.date_start.isoformat(), tz="UTC")
    end = (
        pd.Timestamp(criteria.date_end.isoformat(), tz="UTC")
        + pd.Timedelta(days=1)
        - pd.Timedelta(milliseconds=1)
    )
    event_day = frame["starts_at"].dt.normalize()
    # Events without a start time never fall inside a range
    in_range = event_day.between(start, end)
    return frame[~frame["is_event"] | in_range]


def _rank_by_zip(frame: pd.DataFrame, target_zip: int) -> pd.DataFrame:
    frame = frame.assign(_distance=(target_zip - frame["zip_code"]).abs())
    return frame.sort_values("_distance", kind="stable").head(MAX_PROXIMITY_RESULTS)


def _distance_from(origin: Coordinate, cache: str | None) -> float:
    coord = decode_geocode_cache(cache)
    if coord is None:
        return np.inf
    # Decimal degrees go in unconverted; the ranking matches the live map
    try:
        return haversine(origin.lng, origin.lat, coord.lng, coord.lat)
    except MissingCoordinateError:
        return np.inf


def _rank_by_origin(frame: pd.DataFrame, origin: Coordinate) -> pd.DataFrame:
    distances = frame["geocode_cache"].map(lambda cache: _distance_from(origin, cache))
    frame = frame.assign(_distance=distances.astype(float))
    return frame.sort_values("_distance", kind="stable").head(MAX_PROXIMITY_RESULTS)


def _geocode_origin(address: str, geocode: Geocoder | None) -> Coordinate | None:
    if geocode is None:
        return None
    try:
        return geocode(address)
    except UpstreamUnavailableError:
        logger.warning("Error during address geocoding", exc_info=True)
        return None


def filter_locations(
    records: Sequence[VotingRecord],
    criteria: FilterCriteria,
    geocode: Geocoder | None = None,
    *,
    token: int | None = None,
    sequencer: RequestSequencer | None = None,
) -> FilterResult:
    """
    Narrow ``records`` by ``criteria`` and rank by proximity when requested.

    Stages run in order (borough, category, date range, zip, address) and
    each one is skipped when its criterion is unset. Proximity stages keep
    the nearest ten. A failed address lookup leaves the earlier stages'
    result in place and sets ``geocode_failed``.

    Raises ``StaleRequestError`` when ``sequencer`` reports that ``token`` was
    superseded while the address was being geocoded.
    """
    records = list(records)
    frame = _to_frame(records)
    proximity: ProximityMode | None = None
    origin: Coordinate | None = None
    geocode_failed = False

    # --- Categorical filters ---
    if criteria.borough:
        frame = frame[frame["borough"] == criteria.borough]

    if criteria.category == CategoryFilter.dedicated:
        frame = frame[~frame["is_event"]]
    elif criteria.category == CategoryFilter.event:
        frame = frame[frame["is_event"]]

    if criteria.date_start and criteria.date_end:
        frame = _filter_date_range(frame, criteria)

    # --- Proximity ranking ---
    if criteria.address:
        origin = _geocode_origin(criteria.address, geocode)
        if sequencer is not None and token is not None:
            sequencer.ensure_current(token)
        if origin is not None:
            logger.info("Ranking by distance from (%s, %s)", origin.lat, origin.lng)
            frame = _rank_by_origin(frame, origin)
            proximity = ProximityMode.address
        else:
            logger.error("Could not geocode the input address: %r", criteria.address)
            geocode_failed = True
    elif criteria.zip_code is not None:
        frame = _rank_by_zip(frame, criteria.zip_code)
        proximity = ProximityMode.zip

    distances = None
    if proximity is not None:
        distances = {
            records[position].id: float(value)
            for position, value in frame["_distance"].items()
        }

    return FilterResult(
        records=[records[position] for position in frame.index],
        proximity=proximity,
        origin=origin,
        distances=distances,
        geocode_failed=geocode_failed,
        token=token,
    )
