from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query

from .data_ingestion.ingest import fetch_all_records
from .geocoding.client import geocode_address, make_geocoder
from .locations.data_store import get_records
from .locations.errors import (
    AddressNotFoundError,
    GeocodingError,
    RecordSourceError,
    StaleRequestError,
)
from .locations.filtering import filter_locations
from .locations.models import (
    COMMUNITY_EVENT,
    CategoryFilter,
    FilterCriteria,
    LocationsRequest,
    LocationsResponse,
)
from .locations.presenter import EMPTY_MESSAGE, count_text, diff_markers, present_result
from .locations.sequencing import RequestSequencer

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = (
    "Failed to load voting locations. "
    "Please check your network connection or try again later."
)

app = FastAPI(title="Voting Locations API", version="1.0.0")

_sequencer = RequestSequencer()


def _load_records():
    try:
        return get_records()
    except RecordSourceError:
        logger.error("Failed to fetch locations via backend", exc_info=True)
        raise HTTPException(status_code=502, detail=LOAD_FAILED_MESSAGE)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    records = _load_records()
    boroughs = sorted({r.borough for r in records if r.borough})
    return {
        "boroughs": boroughs,
        "categories": [c.value for c in CategoryFilter],
        "total_locations": len(records),
        "total_events": sum(1 for r in records if r.category == COMMUNITY_EVENT),
    }


@app.post("/locations", response_model=LocationsResponse)
def locations(body: LocationsRequest) -> LocationsResponse:
    records = _load_records()
    token = _sequencer.issue()
    criteria = FilterCriteria.model_validate(body.model_dump(exclude={"previous_marker_ids"}))

    try:
        result = filter_locations(
            records,
            criteria,
            make_geocoder(),
            token=token,
            sequencer=_sequencer,
        )
    except StaleRequestError as exc:
        logger.info("Discarding superseded filter request: %s", exc)
        raise HTTPException(status_code=409, detail=str(exc))

    presented = present_result(result)
    count = len(presented)
    return LocationsResponse(
        locations=presented,
        count=count,
        count_text=count_text(count),
        message=EMPTY_MESSAGE if count == 0 else None,
        proximity=result.proximity,
        geocode_failed=result.geocode_failed,
        markers=diff_markers(body.previous_marker_ids, presented).to_model(),
        token=result.token,
    )


# ── Proxy endpoints ──────────────────────────────────────────────────────


@app.get("/api/GetAirtableData")
def get_airtable_data() -> list[dict]:
    try:
        records = fetch_all_records()
    except RecordSourceError as exc:
        logger.error("Error fetching Airtable data: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return [r.model_dump(by_alias=True, exclude_none=True) for r in records]


@app.get("/api/GeocodeAddress")
def geocode(address: str | None = Query(default=None)) -> dict[str, float]:
    if not address or not address.strip():
        raise HTTPException(
            status_code=400,
            detail="Please provide an 'address' in the query string.",
        )
    try:
        coord = geocode_address(address)
    except AddressNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except GeocodingError as exc:
        logger.error("Error geocoding address: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return {"lat": coord.lat, "lng": coord.lng}
