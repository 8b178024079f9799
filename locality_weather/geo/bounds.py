"""Sanity bounds for coordinates inside Israel."""

from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)

# Generous envelope including border areas and the Golan Heights
MIN_LATITUDE = 29.0
MAX_LATITUDE = 33.5
MIN_LONGITUDE = 34.0
MAX_LONGITUDE = 36.0

# Same envelope in ITM metres (approximate)
MIN_GRID_X = 120000.0
MAX_GRID_X = 320000.0
MIN_GRID_Y = 350000.0
MAX_GRID_Y = 800000.0


def is_valid_geo_bounds(latitude: float, longitude: float) -> bool:
    """Check a WGS84 point lies inside the national envelope."""
    is_valid = (
        MIN_LATITUDE <= latitude <= MAX_LATITUDE
        and MIN_LONGITUDE <= longitude <= MAX_LONGITUDE
    )

    if not is_valid:
        logger.warning(f"Coordinates ({latitude}, {longitude}) are outside Israel bounds")

    return is_valid


def is_valid_grid_bounds(x: float, y: float) -> bool:
    """Check an ITM pair lies inside the national envelope."""
    is_valid = MIN_GRID_X <= x <= MAX_GRID_X and MIN_GRID_Y <= y <= MAX_GRID_Y

    if not is_valid:
        logger.warning(f"ITM coordinates ({x}, {y}) are outside expected Israel bounds")

    return is_valid
