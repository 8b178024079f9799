"""Single-entry, long-TTL cache of the whole locality directory."""

import time
from typing import List, Optional

from pydantic import ValidationError

from locality_weather.cache.blob_store import BlobStore
from locality_weather.config import settings
from locality_weather.data.models import DirectoryCacheStats, PlaceRecord
from locality_weather.data.schemas import DirectorySnapshot
from locality_weather.data.transform import place_from_stored, place_to_stored
from locality_weather.errors import MalformedDirectoryData, StorageError
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


class DirectoryCache:
    """
    Durable cache holding one snapshot of the locality directory.

    Expiry is lazy: a stale or unreadable entry is deleted by the load()
    that finds it. Storage failures are logged and treated as a miss.
    """

    def __init__(
        self,
        store: BlobStore,
        key: str = None,
        ttl_seconds: int = None,
        time_func=time.time,
    ):
        """
        Initialize directory cache.

        Args:
            store: Durable blob store
            key: Storage key of the snapshot
            ttl_seconds: Maximum snapshot age
            time_func: Wall clock returning epoch seconds
        """
        self.blob_store = store
        self.key = key or settings.directory_cache_key
        self.ttl_seconds = settings.directory_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.time_func = time_func

    def _read_snapshot(self) -> Optional[DirectorySnapshot]:
        """Read and validate the stored snapshot. Raises on shape mismatch."""
        try:
            raw = self.blob_store.get(self.key)
        except StorageError as e:
            logger.warning(f"Error reading cached directory: {e}")
            return None

        if raw is None:
            return None

        try:
            return DirectorySnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedDirectoryData(f"Cached directory has an unexpected shape: {e}") from e

    def _discard(self) -> None:
        try:
            self.blob_store.delete(self.key)
        except StorageError as e:
            logger.warning(f"Error removing cached directory: {e}")

    def load(self) -> Optional[List[PlaceRecord]]:
        """
        Return cached places, or None if absent, stale or malformed.

        Stale and malformed entries are deleted from the store.
        """
        try:
            snapshot = self._read_snapshot()
            if snapshot is None:
                logger.info("No cached directory found")
                return None
            places = [place_from_stored(record) for record in snapshot.records]
        except (MalformedDirectoryData, ValueError) as e:
            logger.warning(f"Discarding cached directory: {e}")
            self._discard()
            return None

        age = self.time_func() - snapshot.timestamp
        if age > self.ttl_seconds:
            logger.info(f"Cached directory is expired ({age:.0f}s old), removing")
            self._discard()
            return None

        if not places:
            logger.warning("Cached directory is empty, removing")
            self._discard()
            return None

        return places

    def store(self, places: List[PlaceRecord]) -> None:
        """
        Replace the cached snapshot with places, stamped now.

        Raises:
            MalformedDirectoryData: If places is empty
        """
        if not places:
            raise MalformedDirectoryData("Refusing to cache an empty directory")

        snapshot = DirectorySnapshot(
            records=[place_to_stored(place) for place in places],
            timestamp=self.time_func(),
        )

        try:
            self.blob_store.set(self.key, snapshot.model_dump_json().encode("utf-8"))
            logger.info(f"Cached {len(places)} places")
        except StorageError as e:
            logger.warning(f"Error caching directory: {e}")

    def clear(self) -> None:
        """Remove the cached snapshot."""
        self._discard()
        logger.info("Cleared cached directory")

    def stats(self) -> DirectoryCacheStats:
        """Describe the stored snapshot without modifying it."""
        try:
            snapshot = self._read_snapshot()
        except MalformedDirectoryData as e:
            logger.warning(f"Error getting directory cache info: {e}")
            return DirectoryCacheStats(present=False)

        if snapshot is None:
            return DirectoryCacheStats(present=False)

        age = self.time_func() - snapshot.timestamp
        return DirectoryCacheStats(
            present=True,
            timestamp=snapshot.timestamp,
            age=age,
            expired=age > self.ttl_seconds,
            count=len(snapshot.records),
        )
