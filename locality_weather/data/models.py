"""Data models for places, coordinates and weather observations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class PlaceRecord:
    """A locality from the official directory."""

    symbol_number: int
    name_hebrew: str
    name_english: str
    x: Optional[float] = None  # ITM easting
    y: Optional[float] = None  # ITM northing

    def __post_init__(self):
        """Validate the grid pair is all-or-nothing."""
        if (self.x is None) != (self.y is None):
            raise ValueError(
                f"Place {self.symbol_number} has only one grid coordinate: x={self.x}, y={self.y}"
            )

    @property
    def has_coordinates(self) -> bool:
        return self.x is not None and self.y is not None


def _format_grid_component(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def place_key(place: PlaceRecord) -> str:
    """
    Derive the observation cache key for a place.

    Grid coordinates win when present; otherwise the English name,
    lowercased with whitespace runs collapsed to "_".
    """
    if place.has_coordinates:
        return f"{_format_grid_component(place.x)}_{_format_grid_component(place.y)}"

    name = "_".join(place.name_english.lower().split())
    if name:
        return name

    return f"symbol:{place.symbol_number}"


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 latitude/longitude rounded to 6 decimal places."""

    latitude: float
    longitude: float

    def __post_init__(self):
        object.__setattr__(self, "latitude", round(float(self.latitude), 6))
        object.__setattr__(self, "longitude", round(float(self.longitude), 6))


@dataclass(frozen=True)
class GridPoint:
    """Native ITM grid coordinates in metres, rounded to 2 decimal places."""

    x: float
    y: float

    def __post_init__(self):
        object.__setattr__(self, "x", round(float(self.x), 2))
        object.__setattr__(self, "y", round(float(self.y), 2))


@dataclass(frozen=True)
class WeatherLocation:
    """Location metadata as reported by the weather provider."""

    name: str
    region: str
    country: str
    lat: float
    lon: float
    tz_id: str = ""
    localtime_epoch: int = 0
    localtime: str = ""


@dataclass(frozen=True)
class WeatherCondition:
    text: str
    icon: str
    code: int


@dataclass(frozen=True)
class WeatherObservation:
    """Current conditions for one place, in metric and imperial units."""

    location: WeatherLocation
    last_updated: str
    temp_c: float
    temp_f: float
    condition: WeatherCondition
    wind_mph: float
    wind_kph: float
    wind_dir: str
    pressure_mb: float
    pressure_in: float
    humidity: int
    vis_km: float
    vis_miles: float


class FailureKind(str, Enum):
    """Ways a single provider query can fail."""

    HTTP = "http"
    NETWORK = "network"
    PROVIDER = "provider"
    PAYLOAD = "payload"
    COUNTRY_MISMATCH = "country_mismatch"


@dataclass(frozen=True)
class ProviderFailure:
    """Non-raising outcome of a failed provider query."""

    kind: FailureKind
    message: str
    status_code: Optional[int] = None
    provider_code: Optional[int] = None


@dataclass(frozen=True)
class ResolvedWeather:
    """Successful outcome of WeatherResolver.resolve."""

    observation: WeatherObservation
    place_key: str
    used_coordinates: bool
    from_cache: bool


@dataclass(frozen=True)
class ObservationCacheEntry:
    observation: WeatherObservation
    used_coordinates: bool
    timestamp: float
    expires_at: float


@dataclass(frozen=True)
class ObservationCacheStatsEntry:
    key: str
    expires_at: float
    is_expired: bool


@dataclass(frozen=True)
class ObservationCacheStats:
    size: int
    entries: List[ObservationCacheStatsEntry] = field(default_factory=list)


@dataclass(frozen=True)
class DirectoryCacheStats:
    """Introspection of the durable directory entry."""

    present: bool
    timestamp: Optional[float] = None
    age: Optional[float] = None
    expired: Optional[bool] = None
    count: Optional[int] = None


@dataclass(frozen=True)
class DirectoryLoadResult:
    """Places returned by PlaceDirectory.load and where they came from."""

    places: List[PlaceRecord]
    source: str  # "cache", "api" or "cache-fallback"
    timestamp: float
