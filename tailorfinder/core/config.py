"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

from tailorfinder.models import SpatialFilter

logger = logging.getLogger(__name__)

RECORD_BACKENDS = {"rest", "postgres"}
DEFAULT_SPATIAL_FILTERS = "near-me:Near me:2,within-5km:Within 5 km:5,within-10km:Within 10 km:10"


class ConfigError(RuntimeError):
    """Raised when a configuration value is present but unusable."""


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    database_url: str
    providers_table: str = "tailors"
    record_backend: str = "rest"
    request_timeout: int = 10
    location_timeout: float = 15.0
    server_port: int = 9000
    spatial_filters: Tuple[SpatialFilter, ...] = field(default_factory=tuple)


def parse_spatial_filters(raw: str) -> Tuple[SpatialFilter, ...]:
    """Parse ``id:label:radiusKm`` entries separated by commas."""
    filters = []
    seen = set()
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        parts = [part.strip() for part in chunk.split(":")]
        if len(parts) != 3 or not parts[0]:
            raise ConfigError(f"SPATIAL_FILTERS entry {chunk!r} must look like id:label:radiusKm")
        filter_id, label, radius_raw = parts
        try:
            radius_km = float(radius_raw)
        except ValueError as exc:
            raise ConfigError(f"SPATIAL_FILTERS radius for {filter_id!r} is not numeric") from exc
        if radius_km <= 0:
            raise ConfigError(f"SPATIAL_FILTERS radius for {filter_id!r} must be positive")
        if filter_id in seen:
            raise ConfigError(f"SPATIAL_FILTERS contains duplicate id {filter_id!r}")
        seen.add(filter_id)
        filters.append(SpatialFilter(id=filter_id, label=label or filter_id, radius_km=radius_km))
    return tuple(filters)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    supabase_url = os.getenv("SUPABASE_URL", "").rstrip("/")
    supabase_anon_key = os.getenv("SUPABASE_ANON_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    providers_table = os.getenv("PROVIDERS_TABLE", "tailors").strip() or "tailors"
    record_backend = os.getenv("RECORD_BACKEND", "rest").strip().lower()
    request_timeout = int(os.getenv("REQUEST_TIMEOUT", "10"))
    location_timeout = float(os.getenv("LOCATION_TIMEOUT", "15"))
    port_raw: Optional[str] = os.getenv("PORT") or os.getenv("SERVER_PORT")
    server_port = int(port_raw or 9000)
    spatial_filters = parse_spatial_filters(os.getenv("SPATIAL_FILTERS") or DEFAULT_SPATIAL_FILTERS)

    if record_backend not in RECORD_BACKENDS:
        raise ConfigError(f"Unknown RECORD_BACKEND={record_backend!r}")
    if record_backend == "rest":
        if not supabase_url:
            logger.warning("SUPABASE_URL is not set; record fetches will fail.")
        if not supabase_anon_key:
            logger.warning("SUPABASE_ANON_KEY is not configured; the backend will reject requests.")
    if record_backend == "postgres" and not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")

    return Settings(
        supabase_url=supabase_url,
        supabase_anon_key=supabase_anon_key,
        database_url=database_url,
        providers_table=providers_table,
        record_backend=record_backend,
        request_timeout=request_timeout,
        location_timeout=location_timeout,
        server_port=server_port,
        spatial_filters=spatial_filters,
    )
