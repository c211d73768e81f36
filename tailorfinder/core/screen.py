"""One activation of the directory screen.

The screen owns the two latest-value cells (records, location), the query
text and the active spatial filter. Both sources run concurrently; every
change to any of the four inputs re-derives the result and notifies
subscribers, so partial states (records loaded, location pending) are
delivered as they happen.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from tailorfinder.core.config import Settings
from tailorfinder.engine.derive import FilterEngine
from tailorfinder.engine.matching import FilterCatalogue
from tailorfinder.models import DirectoryResult, SpatialFilter
from tailorfinder.sources.location import LocationProvider, LocationSource
from tailorfinder.sources.records import RecordProvider, RecordSource, get_record_provider

logger = logging.getLogger(__name__)

Listener = Callable[[DirectoryResult], None]


class DirectoryScreen:
    def __init__(
        self,
        record_source: RecordSource,
        location_source: LocationSource,
        catalogue: FilterCatalogue,
    ) -> None:
        self.records = record_source
        self.location = location_source
        self.catalogue = catalogue
        self.query = ""
        self.active_filter: Optional[SpatialFilter] = None
        self._engine = FilterEngine()
        self._listeners: List[Listener] = []
        self._tasks: List[asyncio.Task] = []
        self.records.on_change = self._notify
        self.location.on_change = self._notify

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        location_provider: LocationProvider,
        record_provider: Optional[RecordProvider] = None,
        *,
        location_denied_message: Optional[str] = None,
    ) -> "DirectoryScreen":
        location_kwargs = {"timeout": settings.location_timeout}
        if location_denied_message:
            location_kwargs["denied_message"] = location_denied_message
        return cls(
            RecordSource(record_provider or get_record_provider(settings)),
            LocationSource(location_provider, **location_kwargs),
            FilterCatalogue(settings.spatial_filters),
        )

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def result(self) -> DirectoryResult:
        return self._engine.evaluate(self.records.batch, self.query, self.active_filter, self.location.reading)

    def _notify(self) -> None:
        result = self.result()
        for listener in list(self._listeners):
            listener(result)

    def set_query(self, text: str) -> None:
        self.query = text or ""
        self._notify()

    def select_filter(self, filter_id: str) -> Optional[SpatialFilter]:
        """Toggle ``filter_id``; unknown ids raise KeyError."""
        self.active_filter = self.catalogue.toggle(self.active_filter, filter_id)
        logger.info("Active spatial filter: %s", self.active_filter.id if self.active_filter else None)
        self._notify()
        return self.active_filter

    def clear_filter(self) -> None:
        self.active_filter = None
        self._notify()

    async def activate(self) -> DirectoryResult:
        """Run the record fetch and a fresh location fix side by side."""
        if self._tasks:
            raise RuntimeError("screen is already active")
        self.location.reset()
        self._tasks = [
            asyncio.create_task(self.records.load()),
            asyncio.create_task(self.location.acquire()),
        ]
        try:
            outcomes = await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks = []
        for outcome in outcomes:
            if isinstance(outcome, asyncio.CancelledError):
                logger.info("Source cancelled before completion")
            elif isinstance(outcome, BaseException):
                raise outcome
        return self.result()

    def deactivate(self) -> None:
        for task in self._tasks:
            task.cancel()

    async def retry_records(self) -> DirectoryResult:
        await self.records.load()
        return self.result()
