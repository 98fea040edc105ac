from __future__ import annotations

from typing import Callable

from ..data_ingestion.ingest import fetch_all_records
from .models import VotingRecord

_records: tuple[VotingRecord, ...] | None = None


def get_records(
    source: Callable[[], list[VotingRecord]] | None = None,
) -> tuple[VotingRecord, ...]:
    """Return the master voting-location records, fetching them on first call."""
    global _records
    if _records is None:
        _records = tuple((source or fetch_all_records)())
    return _records


def reset_records() -> None:
    global _records
    _records = None
