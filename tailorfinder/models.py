"""Core data models shared by the directory search engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Optional, Tuple


def usable_coordinates(latitude: Any, longitude: Any) -> Optional[Tuple[float, float]]:
    """Return (lat, lon) when both are finite numbers in range, else None."""
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, Real):
            return None
    lat = float(latitude)
    lon = float(longitude)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return lat, lon


@dataclass(frozen=True, slots=True)
class ProviderRecord:
    """One tailor as returned by the record backend."""

    id: str
    name: str
    description: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    has_location: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """Usable (lat, lon) pair; None when either half is missing or malformed."""
        return usable_coordinates(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class SpatialFilter:
    id: str
    label: str
    radius_km: float


@dataclass(frozen=True, slots=True)
class LocationSnapshot:
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        return usable_coordinates(self.latitude, self.longitude)


class RecordStatus(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class LocationStatus(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    GRANTED = "granted"
    DENIED = "denied"
    RESOLVING = "resolving"
    FIXED = "fixed"
    FAILED = "failed"


class ResultStatus(str, Enum):
    OK = "ok"
    NO_RESULTS = "no_results"
    WAITING_FOR_LOCATION = "waiting_for_location"
    LOCATION_UNAVAILABLE = "location_unavailable"
    LOADING_RECORDS = "loading_records"
    FETCH_ERROR = "fetch_error"


@dataclass(frozen=True, slots=True)
class RecordBatch:
    """Latest value of the record source: a full replacement, never a patch."""

    status: RecordStatus
    records: Tuple[ProviderRecord, ...] = ()
    error: Optional[str] = None

    @classmethod
    def loading(cls) -> "RecordBatch":
        return cls(status=RecordStatus.LOADING)

    @classmethod
    def loaded(cls, records) -> "RecordBatch":
        return cls(status=RecordStatus.LOADED, records=tuple(records))

    @classmethod
    def failed(cls, error: str) -> "RecordBatch":
        return cls(status=RecordStatus.FAILED, error=error)


@dataclass(frozen=True, slots=True)
class LocationReading:
    """Latest value of the location source.

    ``snapshot`` is only ever set while ``status`` is FIXED.
    """

    status: LocationStatus = LocationStatus.IDLE
    snapshot: Optional[LocationSnapshot] = None
    message: Optional[str] = None

    @property
    def unavailable(self) -> bool:
        return self.status in (LocationStatus.DENIED, LocationStatus.FAILED)


@dataclass(frozen=True, slots=True)
class ResultRow:
    record: ProviderRecord
    distance_km: Optional[float] = None


@dataclass(frozen=True, slots=True)
class DirectoryResult:
    """Engine output handed to the presentation layer."""

    rows: Tuple[ResultRow, ...]
    status: ResultStatus
    message: Optional[str] = None
    location_notice: Optional[str] = None

    def __len__(self) -> int:
        return len(self.rows)
