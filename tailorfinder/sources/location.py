"""Location source: permission prompt plus a single position fix.

States move strictly along IDLE -> REQUESTING -> GRANTED -> RESOLVING -> FIXED,
with DENIED as the other outcome of REQUESTING and FAILED as the other
outcome of RESOLVING.

There is no retry and no tracking; one fix per screen activation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

from tailorfinder.engine.derive import DENIED_MESSAGE, FIX_FAILED_MESSAGE
from tailorfinder.models import LocationReading, LocationSnapshot, LocationStatus

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    LocationStatus.IDLE: {LocationStatus.REQUESTING},
    LocationStatus.REQUESTING: {LocationStatus.GRANTED, LocationStatus.DENIED},
    LocationStatus.GRANTED: {LocationStatus.RESOLVING},
    LocationStatus.RESOLVING: {LocationStatus.FIXED, LocationStatus.FAILED},
    LocationStatus.DENIED: set(),
    LocationStatus.FIXED: set(),
    LocationStatus.FAILED: set(),
}


class LocationFixError(RuntimeError):
    """Raised by a provider when no position fix could be produced."""


class LocationProvider(Protocol):
    async def request_permission(self) -> bool:
        ...

    async def get_current_fix(self) -> LocationSnapshot:
        ...


class FixedLocationProvider:
    """Provider answering from a preconfigured position.

    ``snapshot=None`` with ``granted=True`` simulates a device that allows
    location but cannot get a fix.
    """

    def __init__(self, snapshot: Optional[LocationSnapshot], *, granted: bool = True) -> None:
        self.snapshot = snapshot
        self.granted = granted

    async def request_permission(self) -> bool:
        return self.granted

    async def get_current_fix(self) -> LocationSnapshot:
        if self.snapshot is None:
            raise LocationFixError("No position available")
        return self.snapshot


def parse_ll(value: str) -> LocationSnapshot:
    """Parse ``'@lat,lng[,zoom]'`` or ``'lat,lng'`` into a snapshot."""
    raw = (value or "").strip().lstrip("@")
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) < 2:
        raise ValueError(f"expected 'lat,lng', got {value!r}")
    latitude = float(parts[0])
    longitude = float(parts[1])
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValueError(f"coordinates out of range: {value!r}")
    return LocationSnapshot(latitude=latitude, longitude=longitude)


class LocationSource:
    def __init__(
        self,
        provider: LocationProvider,
        *,
        timeout: Optional[float] = None,
        denied_message: str = DENIED_MESSAGE,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self.denied_message = denied_message
        self.on_change = on_change
        self.reading = LocationReading()

    @property
    def status(self) -> LocationStatus:
        return self.reading.status

    def _transition(
        self,
        status: LocationStatus,
        *,
        snapshot: Optional[LocationSnapshot] = None,
        message: Optional[str] = None,
    ) -> None:
        if status not in _TRANSITIONS[self.reading.status]:
            raise RuntimeError(f"invalid location transition {self.reading.status.value} -> {status.value}")
        logger.info("Location %s -> %s", self.reading.status.value, status.value)
        self.reading = LocationReading(status=status, snapshot=snapshot, message=message)
        if self.on_change is not None:
            self.on_change()

    def reset(self) -> None:
        """Forget the previous reading so the next acquire asks again."""
        if self.reading.status is LocationStatus.IDLE:
            return
        logger.info("Location %s -> %s (reset)", self.reading.status.value, LocationStatus.IDLE.value)
        self.reading = LocationReading()
        if self.on_change is not None:
            self.on_change()

    async def acquire(self) -> LocationReading:
        if self.reading.status is not LocationStatus.IDLE:
            return self.reading

        self._transition(LocationStatus.REQUESTING)
        try:
            granted = await self.provider.request_permission()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Permission request failed, treating as denied: %s", exc)
            granted = False

        if not granted:
            self._transition(LocationStatus.DENIED, message=self.denied_message)
            return self.reading

        self._transition(LocationStatus.GRANTED)
        self._transition(LocationStatus.RESOLVING)
        try:
            snapshot = await asyncio.wait_for(self.provider.get_current_fix(), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Location fix timed out after %ss", self.timeout)
            self._transition(LocationStatus.FAILED, message=FIX_FAILED_MESSAGE)
            return self.reading
        except Exception as exc:  # noqa: BLE001
            logger.warning("Location fix failed: %s", exc)
            self._transition(LocationStatus.FAILED, message=FIX_FAILED_MESSAGE)
            return self.reading

        if snapshot is None or snapshot.coordinates is None:
            logger.warning("Location provider returned an unusable fix: %r", snapshot)
            self._transition(LocationStatus.FAILED, message=FIX_FAILED_MESSAGE)
            return self.reading

        self._transition(LocationStatus.FIXED, snapshot=snapshot)
        return self.reading
