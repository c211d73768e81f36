"""Text and spatial predicates applied by the filter engine."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from tailorfinder.engine.distance import haversine_km
from tailorfinder.models import LocationSnapshot, ProviderRecord, SpatialFilter


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().casefold()


def matches_query(record: ProviderRecord, normalized_query: str) -> bool:
    """Contiguous, case-insensitive containment on the record name.

    An empty query matches everything.
    """
    if not normalized_query:
        return True
    name = record.name if isinstance(record.name, str) else ""
    return normalized_query in name.casefold()


def distance_to(record: ProviderRecord, snapshot: Optional[LocationSnapshot]) -> Optional[float]:
    origin = snapshot.coordinates if snapshot is not None else None
    target = record.coordinates
    if origin is None or target is None:
        return None
    return haversine_km(origin[0], origin[1], target[0], target[1])


def passes_spatial_filter(
    distance_km: Optional[float],
    active_filter: Optional[SpatialFilter],
) -> bool:
    """Inclusive radius check against an already computed distance.

    Callers must handle the "filter active, no snapshot" case before getting
    here; a missing distance with an active filter always fails.
    """
    if active_filter is None:
        return True
    if distance_km is None:
        return False
    return distance_km <= active_filter.radius_km


class FilterCatalogue:
    """Ordered set of selectable filters with single-choice toggle semantics."""

    def __init__(self, filters: Iterable[SpatialFilter]) -> None:
        self._filters: Dict[str, SpatialFilter] = {}
        for spatial_filter in filters:
            if spatial_filter.id in self._filters:
                raise ValueError(f"duplicate spatial filter id {spatial_filter.id!r}")
            self._filters[spatial_filter.id] = spatial_filter

    def __iter__(self):
        return iter(self._filters.values())

    def __len__(self) -> int:
        return len(self._filters)

    def __contains__(self, filter_id: object) -> bool:
        return filter_id in self._filters

    def get(self, filter_id: str) -> SpatialFilter:
        try:
            return self._filters[filter_id]
        except KeyError:
            raise KeyError(f"unknown spatial filter {filter_id!r}") from None

    def toggle(self, current: Optional[SpatialFilter], filter_id: str) -> Optional[SpatialFilter]:
        """Select ``filter_id``; selecting the active filter again clears it."""
        selected = self.get(filter_id)
        if current is not None and current.id == selected.id:
            return None
        return selected
