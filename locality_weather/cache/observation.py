"""In-memory, size-bounded TTL cache of weather observations per place."""

import time
from typing import Optional

from cachetools import FIFOCache

from locality_weather.config import settings
from locality_weather.data.models import (
    ObservationCacheEntry,
    ObservationCacheStats,
    ObservationCacheStatsEntry,
    WeatherObservation,
)
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


class _WriteOrderCache(FIFOCache):
    """FIFOCache that logs capacity evictions. Overwrites move a key to the newest slot."""

    def popitem(self):
        key, entry = super().popitem()
        logger.debug(f"Evicted oldest weather entry: {key}")
        return key, entry


class ObservationCache:
    """
    Weather observations keyed by place key.

    Entries expire lazily on get(); set() also sweeps every expired entry
    and evicts oldest-written entries beyond max_entries. Not thread-safe:
    intended for a single asyncio event loop.
    """

    def __init__(
        self,
        ttl_seconds: float = None,
        max_entries: int = None,
        time_func=time.monotonic,
    ):
        """
        Initialize observation cache.

        Args:
            ttl_seconds: Lifetime of an entry
            max_entries: Maximum number of entries kept after a set()
            time_func: Monotonic clock returning seconds
        """
        self.ttl_seconds = settings.observation_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_entries = settings.observation_cache_max_entries if max_entries is None else max_entries
        self.time_func = time_func
        self._entries = _WriteOrderCache(maxsize=self.max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[ObservationCacheEntry]:
        """Get a live entry; an expired one is removed and None returned."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self.time_func() > entry.expires_at:
            del self._entries[key]
            logger.debug(f"Removed expired weather entry: {key}")
            return None

        return entry

    def set(
        self, key: str, observation: WeatherObservation, used_coordinates: bool
    ) -> ObservationCacheEntry:
        """Store an observation, then drop expired entries."""
        now = self.time_func()
        entry = ObservationCacheEntry(
            observation=observation,
            used_coordinates=used_coordinates,
            timestamp=now,
            expires_at=now + self.ttl_seconds,
        )

        self._entries[key] = entry
        self._cleanup_expired(now)

        logger.info(f"Weather cached for {observation.location.name} (key: {key})")
        return entry

    def _cleanup_expired(self, now: float) -> None:
        expired_keys = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired weather entries")

    def clear(self) -> None:
        """Remove all entries."""
        self._entries = _WriteOrderCache(maxsize=self.max_entries)
        logger.info("Weather cache cleared")

    def stats(self) -> ObservationCacheStats:
        """Enumerate entries and their expiry without modifying the cache."""
        now = self.time_func()
        entries = [
            ObservationCacheStatsEntry(
                key=key,
                expires_at=entry.expires_at,
                is_expired=now > entry.expires_at,
            )
            for key, entry in self._entries.items()
        ]
        return ObservationCacheStats(size=len(self._entries), entries=entries)
