"""Tests for the weather resolver fallback chain."""

import asyncio

import pytest

from conftest import FakeProvider, make_observation
from locality_weather.data.models import FailureKind, PlaceRecord, ProviderFailure, ResolvedWeather
from locality_weather.errors import (
    CoordinatesOutOfBoundsError,
    NoCoordinatesError,
    ProviderError,
    ResolutionError,
    ResolutionReason,
)
from locality_weather.geo.bounds import is_valid_geo_bounds
from locality_weather.resolver.resolver import WeatherResolver

HTTP_400 = ProviderFailure(FailureKind.HTTP, "HTTP 400: No matching location found.", status_code=400, provider_code=1006)
NETWORK_DOWN = ProviderFailure(FailureKind.NETWORK, "Network error: connection refused")


@pytest.fixture
def springfield():
    """A name that also exists abroad, with Jerusalem's grid pair."""
    return PlaceRecord(
        symbol_number=4242,
        name_hebrew="ספרינגפילד",
        name_english="Springfield",
        x=222285,
        y=631555,
    )


def make_resolver(provider, cache):
    return WeatherResolver(provider, cache, expected_country="Israel")


class TestWeatherResolver:
    """Tests for WeatherResolver.resolve."""

    @pytest.mark.asyncio
    async def test_name_query_success(self, jerusalem, observation_cache):
        """Test a matching country is accepted without a coordinate query."""
        observation = make_observation()
        provider = FakeProvider(by_name=[observation])
        resolver = make_resolver(provider, observation_cache)

        result = await resolver.resolve(jerusalem)

        assert isinstance(result, ResolvedWeather)
        assert result.observation == observation
        assert result.used_coordinates is False
        assert result.from_cache is False
        assert provider.name_calls == ["Jerusalem"]
        assert provider.coordinate_calls == []
        assert observation_cache.get("222285_631555").used_coordinates is False

    @pytest.mark.asyncio
    async def test_country_check_is_case_insensitive(self, jerusalem, observation_cache):
        provider = FakeProvider(by_name=[make_observation(country="ISRAEL")])
        result = await make_resolver(provider, observation_cache).resolve(jerusalem)

        assert result.used_coordinates is False
        assert provider.coordinate_calls == []

    @pytest.mark.asyncio
    async def test_wrong_country_falls_back_to_coordinates(self, springfield, observation_cache):
        """Test a same-named place abroad is rejected in favour of coordinates."""
        abroad = make_observation(name="Springfield", country="United States", lat=39.8, lon=-89.64)
        local = make_observation(name="Jerusalem", country="Israel")
        provider = FakeProvider(by_name=[abroad], by_coordinates=[local])

        result = await make_resolver(provider, observation_cache).resolve(springfield)

        assert isinstance(result, ResolvedWeather)
        assert result.observation == local
        assert result.used_coordinates is True
        assert provider.name_calls == ["Springfield"]
        assert len(provider.coordinate_calls) == 1

        lat, lon = provider.coordinate_calls[0]
        assert is_valid_geo_bounds(lat, lon)

        cached = observation_cache.get("222285_631555")
        assert cached.observation == local
        assert cached.used_coordinates is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure",
        [
            HTTP_400,
            NETWORK_DOWN,
            ProviderFailure(FailureKind.PROVIDER, "Weather API error: No matching location found.", provider_code=1006),
        ],
    )
    async def test_name_failures_fall_back_to_coordinates(self, jerusalem, observation_cache, failure):
        """Test every name-query failure mode leads to the coordinate path."""
        provider = FakeProvider(by_name=[failure], by_coordinates=[make_observation()])

        result = await make_resolver(provider, observation_cache).resolve(jerusalem)

        assert isinstance(result, ResolvedWeather)
        assert result.used_coordinates is True

    @pytest.mark.asyncio
    async def test_coordinate_result_from_other_country_is_accepted(self, jerusalem, observation_cache):
        """Test the coordinate path only logs a country mismatch."""
        odd = make_observation(country="Palestine")
        provider = FakeProvider(by_name=[HTTP_400], by_coordinates=[odd])

        result = await make_resolver(provider, observation_cache).resolve(jerusalem)

        assert result.observation == odd
        assert result.used_coordinates is True

    @pytest.mark.asyncio
    async def test_no_name_goes_straight_to_coordinates(self, observation_cache):
        place = PlaceRecord(1, "מקום", "", x=180500, y=665500)
        provider = FakeProvider(by_coordinates=[make_observation(name="Tel Aviv-Yafo")])

        result = await make_resolver(provider, observation_cache).resolve(place)

        assert result.used_coordinates is True
        assert provider.name_calls == []

    @pytest.mark.asyncio
    async def test_no_coordinates(self, observation_cache):
        """Test a failed name query without grid data is NoCoordinates."""
        place = PlaceRecord(1, "כפר", "Kfar")
        provider = FakeProvider(by_name=[HTTP_400])

        result = await make_resolver(provider, observation_cache).resolve(place)

        assert isinstance(result, NoCoordinatesError)
        assert result.reason is ResolutionReason.NO_COORDINATES
        assert result.name_cause == HTTP_400
        assert provider.coordinate_calls == []
        assert len(observation_cache) == 0

    @pytest.mark.asyncio
    async def test_bounds_gate_before_any_provider_call(self, observation_cache):
        """Test (0, 0) with no usable name fails without touching the provider."""
        place = PlaceRecord(1, "אפס", "", x=0, y=0)
        provider = FakeProvider()

        result = await make_resolver(provider, observation_cache).resolve(place)

        assert isinstance(result, CoordinatesOutOfBoundsError)
        assert result.reason is ResolutionReason.COORDINATES_OUT_OF_BOUNDS
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_non_finite_coordinates_are_out_of_bounds(self, observation_cache):
        place = PlaceRecord(1, "א", "", x=float("nan"), y=631555)

        result = await make_resolver(FakeProvider(), observation_cache).resolve(place)

        assert isinstance(result, CoordinatesOutOfBoundsError)

    @pytest.mark.asyncio
    async def test_grid_envelope_does_not_gate_the_query(self, observation_cache):
        """Test a grid point north of the envelope still resolves when it projects inside Israel."""
        place = PlaceRecord(1, "צפון", "", x=222285, y=820000)
        provider = FakeProvider(by_coordinates=[make_observation(name="Metula")])

        result = await make_resolver(provider, observation_cache).resolve(place)

        assert isinstance(result, ResolvedWeather)
        assert len(provider.coordinate_calls) == 1
        assert is_valid_geo_bounds(*provider.coordinate_calls[0])

    @pytest.mark.asyncio
    async def test_both_queries_fail(self, jerusalem, observation_cache):
        """Test the provider error carries both causes."""
        provider = FakeProvider(by_name=[HTTP_400], by_coordinates=[NETWORK_DOWN])

        result = await make_resolver(provider, observation_cache).resolve(jerusalem)

        assert isinstance(result, ProviderError)
        assert isinstance(result, ResolutionError)
        assert result.reason is ResolutionReason.PROVIDER_ERROR
        assert result.name_cause == HTTP_400
        assert result.coordinate_cause == NETWORK_DOWN
        assert "No matching location" in result.describe()
        assert "connection refused" in result.describe()
        assert len(observation_cache) == 0

    @pytest.mark.asyncio
    async def test_cache_hit_short_circuits(self, jerusalem, observation_cache):
        """Test a second resolve within TTL makes no provider call."""
        provider = FakeProvider(by_name=[HTTP_400], by_coordinates=[make_observation()])
        resolver = make_resolver(provider, observation_cache)

        first = await resolver.resolve(jerusalem)
        calls = provider.call_count
        second = await resolver.resolve(
            PlaceRecord(3000, "ירושלים", "JERUSALEM", x=222285.0, y=631555.0)
        )

        assert provider.call_count == calls
        assert second.from_cache is True
        assert second.used_coordinates is True
        assert second.observation == first.observation

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, jerusalem, observation_cache, clock):
        provider = FakeProvider(by_name=[make_observation(temp_c=20.0), make_observation(temp_c=25.0)])
        resolver = make_resolver(provider, observation_cache)

        await resolver.resolve(jerusalem)
        clock.advance(1801)
        result = await resolver.resolve(jerusalem)

        assert result.from_cache is False
        assert result.observation.temp_c == 25.0
        assert len(provider.name_calls) == 2

    @pytest.mark.asyncio
    async def test_concurrent_resolves_share_one_query(self, jerusalem, observation_cache):
        """Test identical in-flight requests are de-duplicated."""
        provider = FakeProvider(by_name=[make_observation()])
        provider.gate = asyncio.Event()
        resolver = make_resolver(provider, observation_cache)

        first = asyncio.ensure_future(resolver.resolve(jerusalem))
        second = asyncio.ensure_future(resolver.resolve(jerusalem))
        await asyncio.sleep(0)
        provider.gate.set()
        results = await asyncio.gather(first, second)

        assert provider.name_calls == ["Jerusalem"]
        assert results[0] == results[1]
        assert resolver._in_flight == {}

    @pytest.mark.asyncio
    async def test_cancelled_caller_still_populates_cache(self, jerusalem, observation_cache):
        """Test a late answer still benefits future lookups."""
        provider = FakeProvider(by_name=[make_observation()])
        provider.gate = asyncio.Event()
        resolver = make_resolver(provider, observation_cache)

        waiter = asyncio.ensure_future(resolver.resolve(jerusalem))
        await asyncio.sleep(0)
        waiter.cancel()
        provider.gate.set()
        for _ in range(5):
            await asyncio.sleep(0)

        assert observation_cache.get("222285_631555") is not None
