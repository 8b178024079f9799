"""Durable key/value blob stores backing the directory cache."""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from locality_weather.config import settings
from locality_weather.errors import StorageError
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


class BlobStore(ABC):
    """Byte store with get/set/delete semantics. I/O failures raise StorageError."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store bytes under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""


class FileBlobStore(BlobStore):
    """One file per key under a cache directory."""

    def __init__(self, cache_dir: str = None):
        """Initialize file store."""
        self.cache_dir = Path(cache_dir or settings.cache_dir)

    def _get_path(self, key: str) -> Path:
        """Get file path for a key."""
        # Sanitize key for filesystem
        safe_key = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.cache_dir / f"{safe_key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._get_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Error reading {path}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        path = self._get_path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Error writing {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Error deleting {path}: {e}") from e


class MemoryBlobStore(BlobStore):
    """Dictionary-backed store for tests and ephemeral runs."""

    def __init__(self):
        self.data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
