"""Shared fixtures for shortlinks tests."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import geoip2.errors
import pytest
from fastapi.testclient import TestClient

from shortlinks.core.config import Settings
from shortlinks.core.store import ShortcodeStore
from shortlinks.main import create_app


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class EventRecorder:
    """Collects emitted (stack, level, package, message) events."""

    def __init__(self):
        self.events = []

    def __call__(self, stack, level, package, message):
        self.events.append((stack, level, package, message))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return EventRecorder()


@pytest.fixture
def store(clock, events):
    """Create an isolated store driven by the fake clock."""
    return ShortcodeStore(clock=clock, emit=events)


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, base_url="http://localhost:3000")


@pytest.fixture
def geo_lookups():
    return {}


@pytest.fixture
def app(test_settings, store, geo_lookups):
    """Create an app wired to the test store and a dict-backed geolocator."""
    return create_app(
        settings=test_settings,
        store=store,
        geo_resolver=geo_lookups.get,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


class FakeGeoIPReader:
    """Stands in for geoip2.database.Reader with a fixed table."""

    TABLE = {"8.8.8.8": ("US", "CA", "Mountain View")}
    instances = []

    def __init__(self, path):
        self.path = path
        self.closed = False
        FakeGeoIPReader.instances.append(self)

    def city(self, ip):
        if ip not in self.TABLE:
            raise geoip2.errors.AddressNotFoundError(f"{ip} not in database")
        country, region, city = self.TABLE[ip]
        return SimpleNamespace(
            country=SimpleNamespace(iso_code=country),
            subdivisions=SimpleNamespace(most_specific=SimpleNamespace(iso_code=region)),
            city=SimpleNamespace(name=city),
        )

    def close(self):
        self.closed = True


@pytest.fixture
def fake_geoip(monkeypatch):
    """Replace the GeoIP2 database reader with FakeGeoIPReader."""
    FakeGeoIPReader.instances = []
    monkeypatch.setattr("shortlinks.utils.geoip.geoip2.database.Reader", FakeGeoIPReader)
    return FakeGeoIPReader
