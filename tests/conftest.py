import sys
from pathlib import Path

import pytest

# Ensure the `tailorfinder` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tailorfinder.core import config  # noqa: E402
from tailorfinder.models import ProviderRecord  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture
def sample_records():
    return (
        ProviderRecord(id="1", name="Ace Tailors", has_location=True, latitude=51.5, longitude=-0.1),
        ProviderRecord(id="2", name="Bee Stitch", has_location=True, latitude=None, longitude=None),
    )


class StubRecordProvider:
    def __init__(self, records=None, error=None):
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    def fetch_all(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def stub_provider_cls():
    return StubRecordProvider
