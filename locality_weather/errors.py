"""Error taxonomy for directory loading and weather resolution."""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from locality_weather.data.models import ProviderFailure


class LocalityWeatherError(Exception):
    """Base class for all project errors."""


class StorageError(LocalityWeatherError):
    """Durable store read/write failure. Always recovered as a cache miss."""


class MalformedDirectoryData(LocalityWeatherError):
    """Directory payload (cached or fetched) does not have the expected shape."""


class DirectoryFetchError(LocalityWeatherError):
    """The locality directory could not be fetched."""


class ProjectionError(LocalityWeatherError, ValueError):
    """Coordinate input is not numeric or outside the projection's domain."""


class ResolutionReason(str, Enum):
    """Why a resolution terminally failed."""

    NO_COORDINATES = "no-coordinates"
    COORDINATES_OUT_OF_BOUNDS = "coordinates-out-of-bounds"
    PROVIDER_ERROR = "provider-error"


class ResolutionError(LocalityWeatherError):
    """
    Terminal failure of WeatherResolver.resolve.

    Instances are returned by the resolver rather than raised, so callers
    branch on the result type. They remain exceptions so a caller that
    prefers raising can do so.
    """

    reason: ResolutionReason

    def __init__(
        self,
        message: str,
        name_cause: Optional["ProviderFailure"] = None,
        coordinate_cause: Optional["ProviderFailure"] = None,
    ):
        super().__init__(message)
        self.message = message
        self.name_cause = name_cause
        self.coordinate_cause = coordinate_cause

    def describe(self) -> str:
        """Human-readable summary including both underlying causes."""
        parts = [self.message]
        if self.name_cause is not None:
            parts.append(f"Location name error: {self.name_cause.message}")
        if self.coordinate_cause is not None:
            parts.append(f"Coordinate error: {self.coordinate_cause.message}")
        return ". ".join(parts)


class NoCoordinatesError(ResolutionError):
    """Name query failed or mismatched and the place has no grid coordinates."""

    reason = ResolutionReason.NO_COORDINATES


class CoordinatesOutOfBoundsError(ResolutionError):
    """Projected coordinates fall outside the national envelope."""

    reason = ResolutionReason.COORDINATES_OUT_OF_BOUNDS


class ProviderError(ResolutionError):
    """Both the name and coordinate queries failed at the provider level."""

    reason = ResolutionReason.PROVIDER_ERROR
