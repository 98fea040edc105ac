from __future__ import annotations

import logging
from typing import Any, List, Tuple

import requests

from ..locations.errors import RecordSourceError, RecordSourceNotConfiguredError
from ..locations.models import RECORD_FIELDS, VotingRecord
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)


def _page_params(config: IngestionConfig, offset: str | None) -> List[Tuple[str, Any]]:
    params: List[Tuple[str, Any]] = [("fields[]", name) for name in RECORD_FIELDS]
    params.append(("pageSize", config.page_size))
    params.append(("maxRecords", config.max_records))
    if offset:
        params.append(("offset", offset))
    return params


def _error_detail(response: requests.Response) -> str:
    try:
        error = response.json().get("error")
    except ValueError:
        error = None
    if isinstance(error, dict):
        return error.get("type") or error.get("message") or response.reason
    return error or response.reason


def fetch_all_records(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> list[VotingRecord]:
    """
    Fetch every voting-location record from Airtable.

    Follows the ``offset`` cursor until Airtable stops returning one or
    ``max_records`` records have been collected.
    """
    if not config.configured:
        logger.error("AIRTABLE_API_TOKEN or IDs are missing in environment variables.")
        raise RecordSourceNotConfiguredError(
            "Airtable API keys or IDs are not configured in environment variables."
        )

    headers = {"Authorization": f"Bearer {config.api_token}"}
    records: list[dict[str, Any]] = []
    offset: str | None = None

    while True:
        logger.info("Fetching Airtable page (offset=%s)", offset)
        try:
            response = requests.get(
                config.table_url,
                headers=headers,
                params=_page_params(config, offset),
                timeout=config.timeout,
            )
        except requests.RequestException as exc:
            raise RecordSourceError(f"Failed to fetch Airtable data: {exc}") from exc

        if not response.ok:
            raise RecordSourceError(
                f"Airtable API error: {response.status_code} - {_error_detail(response)}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RecordSourceError(f"Failed to fetch Airtable data: {exc}") from exc
        records.extend(data.get("records", []))
        offset = data.get("offset")
        if not offset or len(records) >= config.max_records:
            break

    logger.info("Successfully fetched %d Airtable records.", len(records))
    return [VotingRecord.model_validate(raw) for raw in records]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    fetched = fetch_all_records()
    print(f"Fetched {len(fetched)} voting locations.")
