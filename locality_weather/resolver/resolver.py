"""Resolve a directory place to current weather with name and coordinate fallbacks."""

import asyncio
from typing import Dict, Optional, Union

from locality_weather.api.weatherapi import ProviderResult, WeatherProvider
from locality_weather.cache.observation import ObservationCache
from locality_weather.config import settings
from locality_weather.data.models import (
    FailureKind,
    PlaceRecord,
    ProviderFailure,
    ResolvedWeather,
    WeatherObservation,
    place_key,
)
from locality_weather.errors import (
    CoordinatesOutOfBoundsError,
    NoCoordinatesError,
    ProjectionError,
    ProviderError,
    ResolutionError,
)
from locality_weather.geo.bounds import is_valid_geo_bounds, is_valid_grid_bounds
from locality_weather.geo.projection import CoordinateTransformer
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)

ResolutionResult = Union[ResolvedWeather, ResolutionError]


class WeatherResolver:
    """
    Turn a PlaceRecord into a weather observation.

    Order of attempts:
        1. observation cache
        2. provider query by English name, accepted only if the reported
           country matches the expected one
        3. provider query by the place's grid coordinates projected to
           WGS84, gated by the national bounds

    Failures are returned as ResolutionError instances, never raised.
    Concurrent resolutions of the same place key share one provider
    round trip.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        cache: ObservationCache,
        transformer: Optional[CoordinateTransformer] = None,
        expected_country: str = None,
    ):
        """
        Initialize resolver.

        Args:
            provider: Weather provider queried by name and by coordinates
            cache: Observation cache owned by the caller
            transformer: ITM to WGS84 transformer
            expected_country: Country a name-based result must report
        """
        self.provider = provider
        self.cache = cache
        self.transformer = transformer or CoordinateTransformer()
        self.expected_country = expected_country or settings.expected_country
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def resolve(self, place: PlaceRecord) -> ResolutionResult:
        """
        Resolve current weather for a place.

        Args:
            place: Directory record to resolve

        Returns:
            ResolvedWeather on success, otherwise a ResolutionError subclass
        """
        key = place_key(place)

        entry = self.cache.get(key)
        if entry is not None:
            logger.info(f"Using cached weather for {place.name_english} (key: {key})")
            return ResolvedWeather(
                observation=entry.observation,
                place_key=key,
                used_coordinates=entry.used_coordinates,
                from_cache=True,
            )

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._resolve_uncached(place, key))
            self._in_flight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight resolution for key {key}")

        # A cancelled caller must not abort a resolution others may share
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    def _country_matches(self, observation: WeatherObservation) -> bool:
        return observation.location.country.lower() == self.expected_country.lower()

    async def _query_by_name(self, name: str) -> ProviderResult:
        """Name query; a result from another country counts as a failure."""
        outcome = await self.provider.query_by_name(name)
        if isinstance(outcome, ProviderFailure):
            return outcome

        if not self._country_matches(outcome):
            country = outcome.location.country
            logger.info(
                f"Location {name!r} found but not in {self.expected_country} ({country})"
            )
            return ProviderFailure(
                FailureKind.COUNTRY_MISMATCH,
                f"Location not in {self.expected_country} ({country})",
            )

        return outcome

    async def _resolve_uncached(self, place: PlaceRecord, key: str) -> ResolutionResult:
        name_cause: Optional[ProviderFailure] = None

        # English is always used for the query, whatever the display language
        if place.name_english.strip():
            outcome = await self._query_by_name(place.name_english)
            if isinstance(outcome, WeatherObservation):
                logger.info(f"Fetched weather for {place.name_english} by name")
                self.cache.set(key, outcome, used_coordinates=False)
                return ResolvedWeather(outcome, key, used_coordinates=False, from_cache=False)

            name_cause = outcome
            logger.info(
                f"Name query for {place.name_english!r} failed ({outcome.message}), trying coordinates"
            )
        else:
            logger.info(f"Place {place.symbol_number} has no English name, trying coordinates")

        if not place.has_coordinates:
            return NoCoordinatesError(
                "No coordinates available for location", name_cause=name_cause
            )

        if not is_valid_grid_bounds(place.x, place.y):
            logger.info(f"Grid point of place {place.symbol_number} is off the ITM envelope, gating on lat/lon only")

        try:
            point = self.transformer.project(place.x, place.y)
        except ProjectionError as e:
            return CoordinatesOutOfBoundsError(
                f"Invalid coordinates: {e}", name_cause=name_cause
            )

        logger.info(
            f"Converted ITM coordinates ({place.x}, {place.y}) to lat/lon "
            f"({point.latitude}, {point.longitude})"
        )

        if not is_valid_geo_bounds(point.latitude, point.longitude):
            return CoordinatesOutOfBoundsError(
                f"Converted coordinates ({point.latitude}, {point.longitude}) are outside "
                f"{self.expected_country} bounds",
                name_cause=name_cause,
            )

        outcome = await self.provider.query_by_coordinates(point.latitude, point.longitude)
        if isinstance(outcome, ProviderFailure):
            logger.error(
                f"Both name and coordinate queries failed for {place.name_english!r}: {outcome.message}"
            )
            return ProviderError(
                "Failed to fetch weather data",
                name_cause=name_cause,
                coordinate_cause=outcome,
            )

        if not self._country_matches(outcome):
            logger.warning(
                f"Coordinate-based location reports country {outcome.location.country}, continuing"
            )

        logger.info(f"Fetched weather for {place.name_english} by coordinates")
        self.cache.set(key, outcome, used_coordinates=True)
        return ResolvedWeather(outcome, key, used_coordinates=True, from_cache=False)
