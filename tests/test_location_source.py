import asyncio

import pytest

from tailorfinder.engine.derive import DENIED_MESSAGE, FIX_FAILED_MESSAGE
from tailorfinder.models import LocationSnapshot, LocationStatus
from tailorfinder.sources.location import FixedLocationProvider, LocationFixError, LocationSource, parse_ll

LONDON = LocationSnapshot(latitude=51.5, longitude=-0.1)


def track(source):
    seen = []
    source.on_change = lambda: seen.append(source.status)
    return seen


def test_granted_and_fixed():
    source = LocationSource(FixedLocationProvider(LONDON))
    seen = track(source)
    assert source.status is LocationStatus.IDLE

    reading = asyncio.run(source.acquire())

    assert reading.status is LocationStatus.FIXED
    assert reading.snapshot == LONDON
    assert seen == [
        LocationStatus.REQUESTING,
        LocationStatus.GRANTED,
        LocationStatus.RESOLVING,
        LocationStatus.FIXED,
    ]


def test_denied_is_terminal():
    source = LocationSource(FixedLocationProvider(LONDON, granted=False))
    seen = track(source)

    reading = asyncio.run(source.acquire())
    again = asyncio.run(source.acquire())

    assert reading.status is LocationStatus.DENIED
    assert reading.snapshot is None
    assert reading.message == DENIED_MESSAGE
    assert again is reading
    assert seen == [LocationStatus.REQUESTING, LocationStatus.DENIED]


def test_fix_failure():
    source = LocationSource(FixedLocationProvider(None))

    reading = asyncio.run(source.acquire())

    assert reading.status is LocationStatus.FAILED
    assert reading.snapshot is None
    assert reading.message == FIX_FAILED_MESSAGE


def test_fix_timeout_becomes_failed(caplog):
    class SlowProvider:
        async def request_permission(self):
            return True

        async def get_current_fix(self):
            await asyncio.sleep(10)
            return LONDON

    source = LocationSource(SlowProvider(), timeout=0.01)
    with caplog.at_level("WARNING"):
        reading = asyncio.run(source.acquire())

    assert reading.status is LocationStatus.FAILED
    assert "timed out" in " ".join(caplog.messages)


def test_permission_error_is_denial():
    class BrokenPrompt:
        async def request_permission(self):
            raise OSError("no prompt available")

        async def get_current_fix(self):
            raise AssertionError("must not be called")

    reading = asyncio.run(LocationSource(BrokenPrompt()).acquire())
    assert reading.status is LocationStatus.DENIED


def test_out_of_range_fix_is_failure():
    source = LocationSource(FixedLocationProvider(LocationSnapshot(latitude=123.0, longitude=0.0)))
    assert asyncio.run(source.acquire()).status is LocationStatus.FAILED


def test_invalid_transition_raises():
    source = LocationSource(FixedLocationProvider(LONDON))
    with pytest.raises(RuntimeError):
        source._transition(LocationStatus.FIXED, snapshot=LONDON)


def test_fixed_provider_raises_fix_error_without_snapshot():
    with pytest.raises(LocationFixError):
        asyncio.run(FixedLocationProvider(None).get_current_fix())


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("@51.5074,-0.1278,13z", (51.5074, -0.1278)),
        ("51.5, -0.1", (51.5, -0.1)),
    ],
)
def test_parse_ll(raw, expected):
    snapshot = parse_ll(raw)
    assert (snapshot.latitude, snapshot.longitude) == expected


@pytest.mark.parametrize("raw", ["", "51.5", "abc,def", "95,0"])
def test_parse_ll_rejects_bad_values(raw):
    with pytest.raises(ValueError):
        parse_ll(raw)


def test_reset_returns_to_idle_and_allows_new_fix():
    provider = FixedLocationProvider(LONDON)
    source = LocationSource(provider)
    asyncio.run(source.acquire())

    source.reset()
    assert source.status is LocationStatus.IDLE
    assert source.reading.snapshot is None

    provider.snapshot = LocationSnapshot(latitude=48.85, longitude=2.35)
    assert asyncio.run(source.acquire()).snapshot == provider.snapshot


def test_custom_denied_message():
    source = LocationSource(FixedLocationProvider(None, granted=False), denied_message="No location was shared.")
    assert asyncio.run(source.acquire()).message == "No location was shared."
