"""Record source: one-shot fetch of the full provider collection."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol

from tailorfinder.core import db
from tailorfinder.core.config import ConfigError, Settings
from tailorfinder.engine.derive import FETCH_ERROR_FALLBACK
from tailorfinder.etl.transform import to_provider_records
from tailorfinder.models import ProviderRecord, RecordBatch
from tailorfinder.vendors import supabase_rest

logger = logging.getLogger(__name__)


class RecordProvider(Protocol):
    def fetch_all(self) -> List[ProviderRecord]:
        """Return every provider. Raise on failure."""


class RestRecordProvider:
    """Reads providers through the Supabase REST API."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def fetch_all(self) -> List[ProviderRecord]:
        rows = supabase_rest.fetch_table(
            self.settings.supabase_url,
            self.settings.providers_table,
            self.settings.supabase_anon_key,
            timeout=self.settings.request_timeout,
        )
        return to_provider_records(rows)


class PostgresRecordProvider:
    """Reads providers straight from the Postgres database behind the API."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def fetch_all(self) -> List[ProviderRecord]:
        return to_provider_records(db.fetch_providers(self.settings.providers_table))


def get_record_provider(settings: Settings) -> RecordProvider:
    if settings.record_backend == "rest":
        return RestRecordProvider(settings)
    if settings.record_backend == "postgres":
        return PostgresRecordProvider(settings)
    raise ConfigError(f"Unknown RECORD_BACKEND={settings.record_backend!r}")


def sort_by_name(records: List[ProviderRecord]) -> List[ProviderRecord]:
    return sorted(records, key=lambda record: (str(record.name).casefold(), str(record.id)))


class RecordSource:
    """Holds the latest RecordBatch and refreshes it on demand.

    Failures never escape ``load``; they become a FAILED batch whose error
    text is shown to the user as-is.
    """

    def __init__(self, provider: RecordProvider, on_change: Optional[Callable[[], None]] = None) -> None:
        self.provider = provider
        self.on_change = on_change
        self.batch = RecordBatch.loading()
        self._in_flight = False

    def _set(self, batch: RecordBatch) -> None:
        self.batch = batch
        if self.on_change is not None:
            self.on_change()

    async def load(self) -> RecordBatch:
        """Fetch once; a call made while a fetch is running is ignored."""
        if self._in_flight:
            logger.info("Provider fetch already in flight; ignoring reload")
            return self.batch

        self._in_flight = True
        try:
            # A new fetch fully replaces whatever was there before.
            self._set(RecordBatch.loading())
            try:
                records = await asyncio.to_thread(self.provider.fetch_all)
            except Exception as exc:  # noqa: BLE001
                logger.error("Provider fetch failed: %s", exc)
                batch = RecordBatch.failed(str(exc) or FETCH_ERROR_FALLBACK)
            else:
                batch = RecordBatch.loaded(sort_by_name(list(records)))
                logger.info("Loaded %d providers", len(batch.records))
            self._set(batch)
        finally:
            self._in_flight = False
        return batch
