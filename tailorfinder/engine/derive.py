"""Pure derivation of the displayed result list.

``derive`` is the whole engine: it reads the latest record batch, the query
text, the active spatial filter and the latest location reading, and builds a
fresh ``DirectoryResult``. It performs no I/O and never raises for any input
the sources can hand it.

Status precedence, highest first:

1. records still loading -> LOADING_RECORDS
2. record fetch failed -> FETCH_ERROR (error text surfaced verbatim)
3. spatial filter active without a snapshot -> WAITING_FOR_LOCATION while the
   location source is still working, LOCATION_UNAVAILABLE once it was denied,
   failed, or produced a fix with unusable coordinates. The list is always empty in this case.
4. nothing survived the filters -> NO_RESULTS
5. otherwise OK
"""

from __future__ import annotations

import logging
from typing import List, Optional

from tailorfinder.engine.matching import distance_to, matches_query, normalize_query, passes_spatial_filter
from tailorfinder.models import (
    DirectoryResult,
    LocationReading,
    LocationSnapshot,
    LocationStatus,
    RecordBatch,
    RecordStatus,
    ResultRow,
    ResultStatus,
    SpatialFilter,
)

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading tailors..."
FETCH_ERROR_FALLBACK = "Unable to load tailors. Try again."
WAITING_MESSAGE = "Waiting for your location..."
DENIED_MESSAGE = "Location permission was denied. Allow location access to filter tailors by distance."
FIX_FAILED_MESSAGE = "We couldn't determine your location. Try again in a moment."
NO_RESULTS_MESSAGE = "No tailors match your search."
NOT_PROVIDED_MESSAGE = "No location was provided. Share your location to see distances and filter by distance."


def location_notice(reading: LocationReading) -> Optional[str]:
    if reading.status is LocationStatus.DENIED:
        return reading.message or DENIED_MESSAGE
    if reading.status is LocationStatus.FAILED:
        return reading.message or FIX_FAILED_MESSAGE
    if reading.status is LocationStatus.FIXED and usable_snapshot(reading) is None:
        return FIX_FAILED_MESSAGE
    return None


def usable_snapshot(reading: LocationReading) -> Optional[LocationSnapshot]:
    """The snapshot to measure from, or None unless FIXED with valid coordinates."""
    if reading.status is not LocationStatus.FIXED or reading.snapshot is None:
        return None
    if reading.snapshot.coordinates is None:
        return None
    return reading.snapshot


def derive(
    batch: RecordBatch,
    query: Optional[str],
    active_filter: Optional[SpatialFilter],
    reading: Optional[LocationReading] = None,
) -> DirectoryResult:
    reading = reading or LocationReading()
    notice = location_notice(reading)

    if batch.status is RecordStatus.LOADING:
        return DirectoryResult(rows=(), status=ResultStatus.LOADING_RECORDS, message=LOADING_MESSAGE, location_notice=notice)
    if batch.status is RecordStatus.FAILED:
        return DirectoryResult(
            rows=(),
            status=ResultStatus.FETCH_ERROR,
            message=batch.error or FETCH_ERROR_FALLBACK,
            location_notice=notice,
        )

    snapshot = usable_snapshot(reading)
    if active_filter is not None and snapshot is None:
        if notice is not None:
            return DirectoryResult(rows=(), status=ResultStatus.LOCATION_UNAVAILABLE, message=notice, location_notice=notice)
        return DirectoryResult(rows=(), status=ResultStatus.WAITING_FOR_LOCATION, message=WAITING_MESSAGE)

    normalized = normalize_query(query)
    rows: List[ResultRow] = []
    for record in batch.records:
        if not matches_query(record, normalized):
            continue
        distance_km = distance_to(record, snapshot)
        if not passes_spatial_filter(distance_km, active_filter):
            continue
        rows.append(ResultRow(record=record, distance_km=distance_km))

    if not rows:
        return DirectoryResult(rows=(), status=ResultStatus.NO_RESULTS, message=NO_RESULTS_MESSAGE, location_notice=notice)
    return DirectoryResult(rows=tuple(rows), status=ResultStatus.OK, location_notice=notice)


class FilterEngine:
    """Re-derives only when one of the four inputs changed identity."""

    def __init__(self) -> None:
        self._inputs = None
        self._result: Optional[DirectoryResult] = None
        self.recomputations = 0

    def evaluate(
        self,
        batch: RecordBatch,
        query: Optional[str],
        active_filter: Optional[SpatialFilter],
        reading: Optional[LocationReading],
    ) -> DirectoryResult:
        if self._result is not None and self._inputs is not None:
            old_batch, old_query, old_filter, old_reading = self._inputs
            if (
                batch is old_batch
                and query == old_query
                and active_filter is old_filter
                and reading is old_reading
            ):
                return self._result

        self._result = derive(batch, query, active_filter, reading)
        self._inputs = (batch, query, active_filter, reading)
        self.recomputations += 1
        logger.debug(
            "Re-derived results: status=%s rows=%d", self._result.status.value, len(self._result.rows)
        )
        return self._result
