import base64
import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from backend.locations.errors import AddressNotFoundError, StaleRequestError
from backend.locations.filtering import MAX_PROXIMITY_RESULTS, filter_locations
from backend.locations.models import (
    CategoryFilter,
    Coordinate,
    FilterCriteria,
    ProximityMode,
    VotingRecord,
)
from backend.locations.sequencing import RequestSequencer

ORIGIN = Coordinate(lat=40.75, lng=-73.99)


def _cache(lat: float, lng: float) -> str:
    payload = json.dumps({"i": "address", "o": {"status": "OK", "lat": lat, "lng": lng}})
    return "\U0001F535 " + base64.b64encode(payload.encode()).decode()


def _record(
    rid: str,
    *,
    category: str = "Early Voting Site",
    borough: str = "Manhattan",
    zip_code=None,
    start: str | None = None,
    cache: str | None = None,
) -> VotingRecord:
    fields = {"Category": category, "Borough": borough}
    if zip_code is not None:
        fields["Zip Code"] = zip_code
    if start is not None:
        fields["Date and Time"] = start
    if cache is not None:
        fields["Geocode Cache (For Maps Extension)"] = cache
    return VotingRecord(id=rid, fields=fields)


def _event(rid: str, **kwargs) -> VotingRecord:
    return _record(rid, category="Community Event", **kwargs)


def _ids(result) -> list[str]:
    return [r.id for r in result.records]


# ── Categorical filters ──────────────────────────────────────────────────


def test_no_criteria_returns_everything_in_order():
    records = [_record("a"), _event("b"), _record("c")]
    result = filter_locations(records, FilterCriteria())
    assert _ids(result) == ["a", "b", "c"]
    assert result.proximity is None
    assert result.distances is None


def test_borough_is_exact_and_case_sensitive():
    records = [
        _record("a", borough="Brooklyn"),
        _record("b", borough="Manhattan"),
        _record("c", borough="brooklyn"),
    ]
    assert _ids(filter_locations(records, FilterCriteria(borough="Brooklyn"))) == ["a"]


def test_dedicated_keeps_non_events_in_order():
    records = [_event("e1"), _record("s1"), _record("s2"), _event("e2"), _record("s3")]
    result = filter_locations(records, FilterCriteria(category=CategoryFilter.dedicated))
    assert _ids(result) == ["s1", "s2", "s3"]


def test_event_keeps_only_community_events():
    records = [_event("e1"), _record("s1"), _event("e2")]
    result = filter_locations(records, FilterCriteria(category="event"))
    assert _ids(result) == ["e1", "e2"]


def test_empty_result_is_not_an_error():
    result = filter_locations([_record("a")], FilterCriteria(borough="Staten Island"))
    assert result.records == []
    assert result.geocode_failed is False


# ── Date range ───────────────────────────────────────────────────────────


def test_date_range_on_single_day():
    election_day = date(2024, 11, 5)
    records = [
        _event("yesterday", start="2024-11-04T14:00:00.000Z"),
        _event("today", start="2024-11-05T14:00:00.000Z"),
        _event("late-today", start="2024-11-05T23:59:00.000Z"),
        _event("tomorrow", start="2024-11-06T00:00:00.000Z"),
        _record("site"),
    ]
    criteria = FilterCriteria(date_start=election_day, date_end=election_day)
    assert _ids(filter_locations(records, criteria)) == ["today", "late-today", "site"]


def test_date_range_drops_events_without_start():
    records = [_event("undated"), _record("site")]
    criteria = FilterCriteria(date_start=date(2024, 11, 1), date_end=date(2024, 11, 30))
    assert _ids(filter_locations(records, criteria)) == ["site"]


def test_date_range_needs_both_bounds():
    records = [_event("old", start="2020-01-01T10:00:00Z")]
    criteria = FilterCriteria(date_start=date(2024, 11, 1))
    assert _ids(filter_locations(records, criteria)) == ["old"]


# ── Zip proximity ────────────────────────────────────────────────────────


def test_zip_orders_by_absolute_difference():
    records = [
        _record("z99999", zip_code=99999),
        _record("z10010", zip_code=10010),
        _record("z10001", zip_code=10001),
        _record("z10002", zip_code=10002),
    ]
    result = filter_locations(records, FilterCriteria(zip_code=10000))
    assert _ids(result) == ["z10001", "z10002", "z10010", "z99999"]
    assert result.proximity == ProximityMode.zip
    assert result.distances["z10010"] == 10


def test_zip_keeps_nearest_ten():
    records = [_record(f"r{i}", zip_code=11200 - i) for i in range(15)]
    result = filter_locations(records, FilterCriteria(zip_code=11200))
    assert len(result.records) == MAX_PROXIMITY_RESULTS
    assert _ids(result) == [f"r{i}" for i in range(10)]


def test_zip_ties_keep_input_order():
    records = [_record("first", zip_code=10003), _record("second", zip_code=9997)]
    assert _ids(filter_locations(records, FilterCriteria(zip_code=10000))) == ["first", "second"]


def test_missing_zip_counts_as_zero():
    records = [_record("known", zip_code="10003"), _record("unknown")]
    result = filter_locations(records, FilterCriteria(zip_code=5))
    assert _ids(result) == ["unknown", "known"]


# ── Address proximity ────────────────────────────────────────────────────


def test_address_ranks_by_distance_with_undecodable_last():
    records = [
        _record("no-cache"),
        _record("far", cache=_cache(40.90, -73.99)),
        _record("here", cache=_cache(40.75, -73.99)),
        _record("near", cache=_cache(40.76, -73.99)),
        _record("broken", cache="garbage!!"),
    ]
    geocode = MagicMock(return_value=ORIGIN)

    result = filter_locations(records, FilterCriteria(address="1 Centre St"), geocode)

    geocode.assert_called_once_with("1 Centre St")
    assert _ids(result) == ["here", "near", "far", "no-cache", "broken"]
    assert result.proximity == ProximityMode.address
    assert result.origin == ORIGIN
    assert result.distances["here"] == 0.0
    assert result.distances["no-cache"] == float("inf")


def test_address_keeps_nearest_ten():
    records = [_record(f"r{i}", cache=_cache(40.75 + i / 100, -73.99)) for i in range(12)]
    result = filter_locations(records, FilterCriteria(address="x"), lambda _: ORIGIN)
    assert _ids(result) == [f"r{i}" for i in range(10)]


def test_address_takes_precedence_over_zip():
    records = [
        _record("zip-match", zip_code=10001, cache=_cache(40.95, -73.99)),
        _record("address-match", zip_code=20000, cache=_cache(40.75, -73.99)),
    ]
    criteria = FilterCriteria(zip_code=10001, address="somewhere")
    result = filter_locations(records, criteria, lambda _: ORIGIN)
    assert result.proximity == ProximityMode.address
    assert _ids(result) == ["address-match", "zip-match"]


def test_failed_geocode_leaves_prior_stages_untouched():
    records = [_event("e1"), _record("s1"), _record("s2"), _record("s3")]
    criteria = FilterCriteria(category="dedicated", address="nowhere")

    result = filter_locations(records, criteria, lambda _: None)

    assert _ids(result) == ["s1", "s2", "s3"]
    assert result.geocode_failed is True
    assert result.proximity is None


def test_geocoder_errors_are_treated_as_failure():
    geocode = MagicMock(side_effect=AddressNotFoundError("Address not found."))
    result = filter_locations([_record("a")], FilterCriteria(address="nowhere"), geocode)
    assert _ids(result) == ["a"]
    assert result.geocode_failed is True


def test_missing_geocoder_is_treated_as_failure():
    result = filter_locations([_record("a")], FilterCriteria(address="nowhere"))
    assert result.geocode_failed is True


def test_proximity_on_empty_input():
    assert filter_locations([], FilterCriteria(zip_code=10001)).records == []
    assert filter_locations([], FilterCriteria(address="x"), lambda _: ORIGIN).records == []


def test_input_records_are_not_reordered():
    records = [_record("b", zip_code=2), _record("a", zip_code=1)]
    filter_locations(records, FilterCriteria(zip_code=1))
    assert [r.id for r in records] == ["b", "a"]


# ── Request ordering ─────────────────────────────────────────────────────


def test_current_token_is_echoed():
    sequencer = RequestSequencer()
    token = sequencer.issue()
    result = filter_locations(
        [_record("a", cache=_cache(40.75, -73.99))],
        FilterCriteria(address="x"),
        lambda _: ORIGIN,
        token=token,
        sequencer=sequencer,
    )
    assert result.token == token


def test_superseded_geocode_response_is_discarded():
    sequencer = RequestSequencer()
    token = sequencer.issue()

    def slow_geocode(address):
        sequencer.issue()  # a newer request arrives meanwhile
        return ORIGIN

    with pytest.raises(StaleRequestError) as excinfo:
        filter_locations(
            [_record("a")],
            FilterCriteria(address="x"),
            slow_geocode,
            token=token,
            sequencer=sequencer,
        )
    assert excinfo.value.token == token
    assert excinfo.value.current == token + 1


def test_sequencer_tokens_increase():
    sequencer = RequestSequencer()
    first, second = sequencer.issue(), sequencer.issue()
    assert second > first
    assert sequencer.is_current(second)
    assert not sequencer.is_current(first)


def test_oversized_cache_value_ranks_last():
    huge = base64.b64encode(('{"o": {"lat": ' + "9" * 400 + ', "lng": -74}}').encode()).decode()
    records = [_record("huge", cache=huge), _record("here", cache=_cache(40.75, -73.99))]
    result = filter_locations(records, FilterCriteria(address="x"), lambda _: ORIGIN)
    assert _ids(result) == ["here", "huge"]
    assert result.distances["huge"] == float("inf")


def test_non_finite_origin_ranks_everything_last_without_raising():
    records = [_record("a", cache=_cache(40.75, -73.99)), _record("b", cache=_cache(40.8, -73.9))]
    origin = Coordinate(lat=float("nan"), lng=-73.99)
    result = filter_locations(records, FilterCriteria(address="x"), lambda _: origin)
    assert _ids(result) == ["a", "b"]
    assert set(result.distances.values()) == {float("inf")}


def test_zip_is_not_a_fallback_when_address_geocoding_fails():
    records = [_record("far", zip_code=99999), _record("near", zip_code=10001)]
    criteria = FilterCriteria(zip_code=10000, address="nowhere")
    result = filter_locations(records, criteria, lambda _: None)
    assert _ids(result) == ["far", "near"]
    assert result.proximity is None
    assert result.geocode_failed is True


def test_ensure_current_rejects_older_token():
    sequencer = RequestSequencer()
    old = sequencer.issue()
    new = sequencer.issue()
    sequencer.ensure_current(new)
    assert sequencer.current == new
    with pytest.raises(StaleRequestError):
        sequencer.ensure_current(old)
