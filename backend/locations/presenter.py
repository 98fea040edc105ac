"""
Display-side shaping of filter results.

Turns engine output into the card and marker data the map page renders,
and works out which map markers to add or drop between two result lists.
The map widget itself lives in the browser; nothing here holds onto it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .geocode_cache import decode_geocode_cache
from .hours import group_by_day
from .models import (
    ADDRESS_FORMATTED,
    CS_OPEN_HOURS,
    END_TIME,
    NAME,
    START_TIME,
    FilterResult,
    HoursGroupOut,
    LocationOut,
    MarkerDiffOut,
    MarkerOut,
    VotingRecord,
)

EVENT_BADGE = "Community Voting Event"
SITE_BADGE = "Voting Site"
EVENT_MARKER = "red"
SITE_MARKER = "green"
EMPTY_MESSAGE = "No locations found matching your criteria."


def count_text(count: int) -> str:
    noun = "location" if count == 1 else "locations"
    return f"Found {count} {noun}"


def _hours_groups(record: VotingRecord) -> list[HoursGroupOut]:
    groups = group_by_day(record.fields.get(CS_OPEN_HOURS) or "")
    return [
        HoursGroupOut(
            days=", ".join(days),
            hours="Closed" if label.closed else label.text,
            parsed=label.parsed or label.closed,
        )
        for label, days in groups.items()
    ]


def _marker(record: VotingRecord) -> MarkerOut | None:
    coord = decode_geocode_cache(record.geocode_cache)
    if coord is None:
        return None
    return MarkerOut(
        lat=coord.lat,
        lng=coord.lng,
        color=EVENT_MARKER if record.is_event else SITE_MARKER,
    )


def present_location(record: VotingRecord, distance: float | None = None) -> LocationOut:
    fields = record.fields
    is_event = record.is_event

    starts_at = ends_at = None
    hours: list[HoursGroupOut] = []
    if is_event:
        starts_at = fields.get(START_TIME)
        ends_at = fields.get(END_TIME) if starts_at else None
    else:
        hours = _hours_groups(record)

    return LocationOut(
        id=record.id,
        name=fields.get(NAME) or "No name provided",
        address=fields.get(ADDRESS_FORMATTED) or "No address provided",
        is_event=is_event,
        badge=EVENT_BADGE if is_event else SITE_BADGE,
        starts_at=starts_at,
        ends_at=ends_at,
        hours=hours,
        marker=_marker(record),
        distance=distance if distance is not None and math.isfinite(distance) else None,
    )


def present_result(result: FilterResult) -> list[LocationOut]:
    distances = result.distances or {}
    return [present_location(r, distances.get(r.id)) for r in result.records]


@dataclass
class MarkerDiff:
    add: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)
    keep: list[str] = field(default_factory=list)

    def to_model(self) -> MarkerDiffOut:
        return MarkerDiffOut(add=self.add, remove=self.remove, keep=self.keep)


def diff_markers(previous_ids: Iterable[str], locations: Sequence[LocationOut]) -> MarkerDiff:
    """Compare the markers on the map with the ones the new result needs."""
    previous = list(dict.fromkeys(previous_ids))
    wanted = [loc.id for loc in locations if loc.marker is not None]
    wanted_set = set(wanted)
    previous_set = set(previous)
    return MarkerDiff(
        add=[i for i in wanted if i not in previous_set],
        remove=[i for i in previous if i not in wanted_set],
        keep=[i for i in wanted if i in previous_set],
    )
