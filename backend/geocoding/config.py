from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class GeocodingConfig:
    api_key: str = os.getenv("GEOCODING_API_KEY", "")
    api_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    timeout: float = 10.0
    enabled: bool = True


DEFAULT_GEOCODING_CONFIG = GeocodingConfig()
