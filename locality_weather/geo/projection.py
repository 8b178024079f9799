"""Reprojection between the Israeli Transverse Mercator grid and WGS84."""

import math
from numbers import Real
from typing import Optional

from pyproj import CRS, Transformer

from locality_weather.data.models import GeoPoint, GridPoint
from locality_weather.errors import ProjectionError
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)

# Israeli Transverse Mercator, as published by the Survey of Israel
ITM_ORIGIN_LAT = 31.734393892
ITM_ORIGIN_LON = 35.204516667
ITM_FALSE_EASTING = 219529.584
ITM_FALSE_NORTHING = 626907.39

ITM_PROJ = (
    "+proj=tmerc "
    f"+lat_0={ITM_ORIGIN_LAT} +lon_0={ITM_ORIGIN_LON} +k=1.0000067 "
    f"+x_0={ITM_FALSE_EASTING} +y_0={ITM_FALSE_NORTHING} "
    "+ellps=GRS80 +towgs84=-48,55,52,0,0,0,0 +units=m +no_defs"
)
WGS84_EPSG = 4326

METERS_PER_DEGREE_LAT = 111320.0
EARTH_RADIUS_KM = 6371.0


def _require_finite(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ProjectionError(f"{name} must be numeric, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ProjectionError(f"{name} must be finite, got {value!r}")
    return value


def project_linear(x: float, y: float) -> GeoPoint:
    """
    First-order ITM to WGS84 approximation.

    Offsets from the false origin are scaled by a fixed metres-per-degree
    figure, with longitude corrected by the cosine of the origin latitude.
    Good to a few hundred metres near the origin, which is enough for a
    weather lookup.
    """
    x = _require_finite("x", x)
    y = _require_finite("y", y)

    d_lat = (y - ITM_FALSE_NORTHING) / METERS_PER_DEGREE_LAT
    d_lon = (x - ITM_FALSE_EASTING) / (
        METERS_PER_DEGREE_LAT * math.cos(math.radians(ITM_ORIGIN_LAT))
    )

    return GeoPoint(ITM_ORIGIN_LAT + d_lat, ITM_ORIGIN_LON + d_lon)


class CoordinateTransformer:
    """Convert ITM grid coordinates to WGS84 and back."""

    def __init__(self, proj_definition: str = ITM_PROJ):
        """
        Initialize transformer.

        Args:
            proj_definition: PROJ string of the native grid
        """
        self.proj_definition = proj_definition
        self._forward: Optional[Transformer] = None
        self._inverse: Optional[Transformer] = None

        try:
            grid_crs = CRS.from_proj4(proj_definition)
            wgs84 = CRS.from_epsg(WGS84_EPSG)
            self._forward = Transformer.from_crs(grid_crs, wgs84, always_xy=True)
            self._inverse = Transformer.from_crs(wgs84, grid_crs, always_xy=True)
        except Exception as e:
            logger.error(f"Failed to build ITM transformer, using linear approximation: {e}")

    def project(self, x: float, y: float) -> GeoPoint:
        """
        Project an ITM pair to WGS84.

        Falls back to project_linear when the precise transformation fails
        or yields a non-finite result.

        Raises:
            ProjectionError: If x or y is not a finite number
        """
        x = _require_finite("x", x)
        y = _require_finite("y", y)

        if self._forward is not None:
            try:
                longitude, latitude = self._forward.transform(x, y, errcheck=True)
                if math.isfinite(latitude) and math.isfinite(longitude):
                    return GeoPoint(latitude, longitude)
                logger.warning(f"Non-finite projection for ITM ({x}, {y}), using approximation")
            except Exception as e:
                logger.error(f"Error converting ITM ({x}, {y}) to lat/lon: {e}")

        return project_linear(x, y)

    def unproject(self, latitude: float, longitude: float) -> GridPoint:
        """
        Project WGS84 back to the ITM grid.

        Raises:
            ProjectionError: On non-numeric input or if the transformation fails
        """
        latitude = _require_finite("latitude", latitude)
        longitude = _require_finite("longitude", longitude)

        if self._inverse is None:
            raise ProjectionError("ITM inverse transformation is unavailable")

        try:
            x, y = self._inverse.transform(longitude, latitude, errcheck=True)
        except Exception as e:
            raise ProjectionError(
                f"Failed to convert ({latitude}, {longitude}) to ITM: {e}"
            ) from e

        if not (math.isfinite(x) and math.isfinite(y)):
            raise ProjectionError(f"Failed to convert ({latitude}, {longitude}) to ITM")

        return GridPoint(x, y)


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance between two points in kilometres."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude))
        * math.cos(math.radians(b.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
