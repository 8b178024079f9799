"""Loading and searching the locality directory."""

import time
from typing import List, Optional

from locality_weather.api.directory import PlaceDirectoryClient
from locality_weather.cache.directory import DirectoryCache
from locality_weather.config import settings
from locality_weather.data.models import DirectoryLoadResult, PlaceRecord
from locality_weather.data.transform import transform_directory_records
from locality_weather.errors import DirectoryFetchError, MalformedDirectoryData
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


class PlaceDirectory:
    """Serve the directory from cache, refreshing from the source on a miss."""

    def __init__(self, client: PlaceDirectoryClient, cache: DirectoryCache, time_func=time.time):
        """
        Initialize place directory.

        Args:
            client: Directory source client
            cache: Durable directory cache
            time_func: Clock for result timestamps
        """
        self.client = client
        self.cache = cache
        self.time_func = time_func

    async def load(self, force_refresh: bool = False) -> DirectoryLoadResult:
        """
        Load places, preferring a fresh cached snapshot.

        Args:
            force_refresh: Skip the cache and fetch from the source

        Returns:
            DirectoryLoadResult with source "cache", "api" or "cache-fallback"

        Raises:
            DirectoryFetchError: If fetching fails and no usable cache exists
        """
        if not force_refresh:
            cached = self.cache.load()
            if cached:
                return DirectoryLoadResult(cached, "cache", self.time_func())

        try:
            raw_records = await self.client.fetch()
            places = transform_directory_records(raw_records)
            if not places:
                raise DirectoryFetchError("No location data received from API")
        except (DirectoryFetchError, MalformedDirectoryData) as e:
            logger.error(f"Error fetching locations: {e}")

            cached = self.cache.load()
            if cached:
                logger.warning(f"Using cached directory after fetch failure ({len(cached)} places)")
                return DirectoryLoadResult(cached, "cache-fallback", self.time_func())

            if isinstance(e, DirectoryFetchError):
                raise
            raise DirectoryFetchError(str(e)) from e

        self.cache.store(places)
        return DirectoryLoadResult(places, "api", self.time_func())


def search_places(places: List[PlaceRecord], term: str, limit: int = None) -> List[PlaceRecord]:
    """
    Case-insensitive substring search over both names.

    Args:
        places: Directory to search
        term: Search text; blank returns no results
        limit: Maximum number of results, in directory order

    Returns:
        Matching places
    """
    limit = limit or settings.max_search_results
    needle = term.strip().lower()
    if not needle:
        return []

    matches = []
    for place in places:
        if needle in place.name_hebrew.lower() or needle in place.name_english.lower():
            matches.append(place)
            if len(matches) >= limit:
                break

    return matches


def find_by_symbol(places: List[PlaceRecord], symbol_number: int) -> Optional[PlaceRecord]:
    """Get place by its official symbol number."""
    for place in places:
        if place.symbol_number == symbol_number:
            return place
    return None
