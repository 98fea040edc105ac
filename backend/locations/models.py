from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Airtable field names
CATEGORY = "Category"
START_TIME = "Date and Time"
END_TIME = "End Time"
NAME = "Name of Voting Location or Voting Event"
BOROUGH = "Borough"
ADDRESS = "Address"
ADDRESS_FORMATTED = "Address Formatted"
ZIP_CODE = "Zip Code"
OPEN_HOURS = "Open Hours"
CS_OPEN_HOURS = "CS Open Hours"
GEOCODE_CACHE = "Geocode Cache (For Maps Extension)"

RECORD_FIELDS: list[str] = [
    CATEGORY,
    START_TIME,
    END_TIME,
    NAME,
    BOROUGH,
    ADDRESS,
    GEOCODE_CACHE,
    ADDRESS_FORMATTED,
    ZIP_CODE,
    OPEN_HOURS,
    CS_OPEN_HOURS,
]

COMMUNITY_EVENT = "Community Event"


class Coordinate(NamedTuple):
    lat: float
    lng: float


class VotingRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_time: str | None = Field(default=None, alias="createdTime")

    @property
    def category(self) -> str | None:
        return self.fields.get(CATEGORY)

    @property
    def is_event(self) -> bool:
        return self.category == COMMUNITY_EVENT

    @property
    def borough(self) -> str | None:
        return self.fields.get(BOROUGH)

    @property
    def zip_code(self) -> Any:
        return self.fields.get(ZIP_CODE)

    @property
    def geocode_cache(self) -> str | None:
        return self.fields.get(GEOCODE_CACHE)


class CategoryFilter(str, Enum):
    all = "all"
    dedicated = "dedicated"
    event = "event"


class FilterCriteria(BaseModel):
    borough: str | None = None
    category: CategoryFilter = CategoryFilter.all
    date_start: date | None = None
    date_end: date | None = None
    zip_code: int | None = Field(default=None, ge=0)
    address: str | None = Field(default=None, max_length=500)

    @field_validator("borough", "address", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("zip_code", "date_start", "date_end", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        # Form inputs send "" for untouched controls
        if value == "":
            return None
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _category_default(cls, value: Any) -> Any:
        if value in ("", None):
            return CategoryFilter.all
        return value


class ProximityMode(str, Enum):
    zip = "zip"
    address = "address"


class FilterResult(BaseModel):
    records: list[VotingRecord]
    proximity: ProximityMode | None = None
    origin: Coordinate | None = None
    distances: dict[str, float] | None = None
    geocode_failed: bool = False
    token: int | None = None


# ── API response models ──────────────────────────────────────────────────


class HoursGroupOut(BaseModel):
    days: str
    hours: str
    parsed: bool = True


class MarkerOut(BaseModel):
    lat: float
    lng: float
    color: str


class LocationOut(BaseModel):
    id: str
    name: str
    address: str
    is_event: bool
    badge: str
    starts_at: str | None = None
    ends_at: str | None = None
    hours: list[HoursGroupOut] = Field(default_factory=list)
    marker: MarkerOut | None = None
    distance: float | None = None


class MarkerDiffOut(BaseModel):
    add: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)
    keep: list[str] = Field(default_factory=list)


class LocationsRequest(FilterCriteria):
    previous_marker_ids: list[str] = Field(default_factory=list)


class LocationsResponse(BaseModel):
    locations: list[LocationOut]
    count: int
    count_text: str
    message: str | None = None
    proximity: ProximityMode | None = None
    geocode_failed: bool = False
    markers: MarkerDiffOut = Field(default_factory=MarkerDiffOut)
    token: int | None = None
