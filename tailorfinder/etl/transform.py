"""Utilities for turning raw backend rows into ProviderRecord objects."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from tailorfinder.models import ProviderRecord, usable_coordinates

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "t", "yes", "y"}

# Backend column -> ProviderRecord field. camelCase and snake_case both occur
# depending on how the table was created.
_FIELD_ALIASES = {
    "description": ("description",),
    "phone": ("phone",),
    "email": ("email",),
    "address_line1": ("address_line1", "addressLine1", "address_line_1"),
    "address_line2": ("address_line2", "addressLine2", "address_line_2"),
    "city": ("city",),
    "postcode": ("postcode", "post_code", "postal_code"),
    "country": ("country",),
}


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None or isinstance(value, bool):
            return None
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result


def _safe_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUTHY


def _first(row: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return None


def parse_coordinates(latitude: Any, longitude: Any) -> tuple:
    """Return (lat, lon) when both halves are usable, else (None, None)."""
    return usable_coordinates(_safe_float(latitude), _safe_float(longitude)) or (None, None)


def to_provider_record(row: Dict[str, Any]) -> Optional[ProviderRecord]:
    """Build a ProviderRecord, or None when the row lacks an id or a name."""
    record_id = _strip_or_none(row.get("id"))
    name = _strip_or_none(row.get("name"))
    if record_id is None or name is None:
        return None

    latitude, longitude = parse_coordinates(row.get("latitude"), row.get("longitude"))
    optional = {field: _strip_or_none(_first(row, keys)) for field, keys in _FIELD_ALIASES.items()}

    return ProviderRecord(
        id=record_id,
        name=name,
        has_location=_safe_bool(_first(row, ("has_location", "hasLocation"))),
        latitude=latitude,
        longitude=longitude,
        **optional,
    )


def to_provider_records(rows: Iterable[Any]) -> List[ProviderRecord]:
    """Convert a fetched batch, skipping malformed rows and duplicate ids."""
    records: List[ProviderRecord] = []
    seen_ids = set()
    for row in rows or []:
        if not isinstance(row, dict):
            logger.debug("Skipping non-mapping row: %r", row)
            continue
        record = to_provider_record(row)
        if record is None:
            logger.warning("Skipping provider row without id or name: id=%r", row.get("id"))
            continue
        if record.id in seen_ids:
            logger.warning("Skipping duplicate provider id=%s", record.id)
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records
