"""
Configuration for the Airtable record source.

Credentials come from the environment (or a ``.env`` file at the project root).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for fetching voting locations from Airtable.
    """

    api_token: str = os.getenv("AIRTABLE_API_TOKEN", "")
    base_id: str = os.getenv("AIRTABLE_BASE_ID", "")
    table_id: str = os.getenv("AIRTABLE_TABLE_ID", "")
    max_records: int = int(os.getenv("MAX_RECORDS", "400"))
    page_size: int = int(os.getenv("PAGE_SIZE", "100"))
    api_url: str = "https://api.airtable.com/v0"
    timeout: float = 15.0

    @property
    def configured(self) -> bool:
        return bool(self.api_token and self.base_id and self.table_id)

    @property
    def table_url(self) -> str:
        return f"{self.api_url}/{self.base_id}/{self.table_id}"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
