"""Pytest configuration and fixtures."""

import asyncio
from typing import List, Optional

import pytest

from locality_weather.api.weatherapi import ProviderResult, WeatherProvider
from locality_weather.cache.blob_store import MemoryBlobStore
from locality_weather.cache.directory import DirectoryCache
from locality_weather.cache.observation import ObservationCache
from locality_weather.data.models import (
    PlaceRecord,
    WeatherCondition,
    WeatherLocation,
    WeatherObservation,
)


# weatherapi.com current.json response (trimmed)
CURRENT_RESPONSE = {
    "location": {
        "name": "Jerusalem",
        "region": "Jerusalem",
        "country": "Israel",
        "lat": 31.78,
        "lon": 35.23,
        "tz_id": "Asia/Jerusalem",
        "localtime_epoch": 1700000000,
        "localtime": "2023-11-14 23:13",
    },
    "current": {
        "last_updated_epoch": 1699999200,
        "last_updated": "2023-11-14 23:00",
        "temp_c": 14.0,
        "temp_f": 57.2,
        "is_day": 0,
        "condition": {"text": "Clear", "icon": "//cdn.weatherapi.com/weather/64x64/night/113.png", "code": 1000},
        "wind_mph": 5.6,
        "wind_kph": 9.0,
        "wind_degree": 290,
        "wind_dir": "WNW",
        "pressure_mb": 1015.0,
        "pressure_in": 29.97,
        "precip_mm": 0.0,
        "humidity": 72,
        "cloud": 0,
        "vis_km": 10.0,
        "vis_miles": 6.0,
        "uv": 1.0,
    },
}


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(WeatherProvider):
    """Weather provider returning queued outcomes and recording every call."""

    def __init__(
        self,
        by_name: Optional[List[ProviderResult]] = None,
        by_coordinates: Optional[List[ProviderResult]] = None,
    ):
        self.by_name = list(by_name or [])
        self.by_coordinates = list(by_coordinates or [])
        self.name_calls: List[str] = []
        self.coordinate_calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def query_by_name(self, name: str) -> ProviderResult:
        self.name_calls.append(name)
        if self.gate is not None:
            await self.gate.wait()
        return self.by_name.pop(0)

    async def query_by_coordinates(self, latitude: float, longitude: float) -> ProviderResult:
        self.coordinate_calls.append((latitude, longitude))
        if self.gate is not None:
            await self.gate.wait()
        return self.by_coordinates.pop(0)

    @property
    def call_count(self) -> int:
        return len(self.name_calls) + len(self.coordinate_calls)


def make_observation(
    name: str = "Jerusalem",
    country: str = "Israel",
    temp_c: float = 21.0,
    lat: float = 31.78,
    lon: float = 35.23,
) -> WeatherObservation:
    """Build an observation with plausible values."""
    return WeatherObservation(
        location=WeatherLocation(
            name=name,
            region="Jerusalem District",
            country=country,
            lat=lat,
            lon=lon,
            tz_id="Asia/Jerusalem",
            localtime_epoch=1700000000,
            localtime="2023-11-14 23:13",
        ),
        last_updated="2023-11-14 23:00",
        temp_c=temp_c,
        temp_f=round(temp_c * 9 / 5 + 32, 1),
        condition=WeatherCondition(
            text="Clear", icon="//cdn.weatherapi.com/weather/64x64/night/113.png", code=1000
        ),
        wind_mph=5.6,
        wind_kph=9.0,
        wind_dir="WNW",
        pressure_mb=1015.0,
        pressure_in=29.97,
        humidity=55,
        vis_km=10.0,
        vis_miles=6.0,
    )


@pytest.fixture
def clock():
    """Fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def jerusalem():
    """Jerusalem with its ITM coordinates."""
    return PlaceRecord(
        symbol_number=3000,
        name_hebrew="ירושלים",
        name_english="Jerusalem",
        x=222285,
        y=631555,
    )


@pytest.fixture
def tel_aviv():
    """Tel Aviv - Yafo with its ITM coordinates."""
    return PlaceRecord(
        symbol_number=5000,
        name_hebrew="תל אביב - יפו",
        name_english="Tel Aviv - Yafo",
        x=180500,
        y=665500,
    )


@pytest.fixture
def sample_places(jerusalem, tel_aviv):
    """Small directory."""
    return [
        jerusalem,
        tel_aviv,
        PlaceRecord(
            symbol_number=2600,
            name_hebrew="אילת",
            name_english="Eilat",
            x=194800,
            y=385600,
        ),
        PlaceRecord(symbol_number=1234, name_hebrew="כפר ללא נקודה", name_english="Kfar Bli Nekuda"),
    ]


@pytest.fixture
def sample_raw_records():
    """Raw directory records as returned by the CKAN datastore."""
    return [
        {"_id": 1, "symbol_number": 3000, "name_in_hebrew": "ירושלים ", "name_in_english": "JERUSALEM", "X": 222285, "Y": 631555},
        {"_id": 2, "symbol_number": 5000, "name_in_hebrew": "תל אביב - יפו", "name_in_english": "TEL AVIV - YAFO", "X": 180500, "Y": 665500},
        {"_id": 3, "symbol_number": 9999, "name_in_hebrew": "", "name_in_english": "NO HEBREW", "X": 200000, "Y": 600000},
        {"_id": 4, "symbol_number": 1234, "name_in_hebrew": "כפר", "name_in_english": "KFAR", "X": None, "Y": 600000},
    ]


@pytest.fixture
def observation_cache(clock):
    """Observation cache with a fake clock."""
    return ObservationCache(ttl_seconds=1800, max_entries=50, time_func=clock)


@pytest.fixture
def blob_store():
    """In-memory durable store."""
    return MemoryBlobStore()


@pytest.fixture
def directory_cache(blob_store, clock):
    """Directory cache over an in-memory store."""
    return DirectoryCache(blob_store, key="test_locations", ttl_seconds=24 * 3600, time_func=clock)
