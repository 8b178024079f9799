"""Data transformation and normalization."""

from typing import Any, Dict, List, Optional

from locality_weather.data.models import (
    GeoPoint,
    PlaceRecord,
    WeatherCondition,
    WeatherLocation,
    WeatherObservation,
)
from locality_weather.data.schemas import StoredPlaceRecord, WeatherApiResponse
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


def to_title_case(text: str) -> str:
    """
    Convert an ALL CAPS directory name to title case.

    Whitespace runs are collapsed. Hyphens and apostrophes stay attached
    to their word, so "TEL AVIV - YAFO" becomes "Tel Aviv - Yafo".
    """
    if not text:
        return ""

    return " ".join(word[0].upper() + word[1:] for word in text.lower().split())


def _coerce_identifier(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _coerce_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _clean_name(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def transform_directory_records(records: List[Dict[str, Any]]) -> List[PlaceRecord]:
    """
    Transform raw directory records into PlaceRecords.

    Records without an identifier or without both names are dropped.
    The grid pair is kept only when both components are numeric.

    Args:
        records: Raw record dictionaries from the directory source

    Returns:
        List of PlaceRecords in source order
    """
    places = []
    dropped = 0

    for record in records:
        symbol_number = _coerce_identifier(record.get("symbol_number"))
        name_hebrew = _clean_name(record.get("name_in_hebrew"))
        name_english = _clean_name(record.get("name_in_english"))

        if symbol_number is None or not name_hebrew or not name_english:
            dropped += 1
            continue

        x = _coerce_coordinate(record.get("X"))
        y = _coerce_coordinate(record.get("Y"))
        if x is None or y is None:
            x = y = None

        places.append(
            PlaceRecord(
                symbol_number=symbol_number,
                name_hebrew=name_hebrew,
                name_english=to_title_case(name_english),
                x=x,
                y=y,
            )
        )

    if dropped:
        logger.info(f"Dropped {dropped} directory records with missing fields")

    return places


def place_to_stored(place: PlaceRecord) -> StoredPlaceRecord:
    return StoredPlaceRecord(
        symbol_number=place.symbol_number,
        name_hebrew=place.name_hebrew,
        name_english=place.name_english,
        x=place.x,
        y=place.y,
    )


def place_from_stored(stored: StoredPlaceRecord) -> PlaceRecord:
    return PlaceRecord(
        symbol_number=stored.symbol_number,
        name_hebrew=stored.name_hebrew,
        name_english=stored.name_english,
        x=stored.x,
        y=stored.y,
    )


def observation_from_payload(payload: WeatherApiResponse) -> WeatherObservation:
    """Flatten a validated provider payload into a WeatherObservation."""
    location = payload.location
    current = payload.current

    return WeatherObservation(
        location=WeatherLocation(
            name=location.name,
            region=location.region,
            country=location.country,
            lat=location.lat,
            lon=location.lon,
            tz_id=location.tz_id,
            localtime_epoch=location.localtime_epoch,
            localtime=location.localtime,
        ),
        last_updated=current.last_updated,
        temp_c=current.temp_c,
        temp_f=current.temp_f,
        condition=WeatherCondition(
            text=current.condition.text,
            icon=current.condition.icon,
            code=current.condition.code,
        ),
        wind_mph=current.wind_mph,
        wind_kph=current.wind_kph,
        wind_dir=current.wind_dir,
        pressure_mb=current.pressure_mb,
        pressure_in=current.pressure_in,
        humidity=current.humidity,
        vis_km=current.vis_km,
        vis_miles=current.vis_miles,
    )


def observation_location_point(observation: WeatherObservation) -> GeoPoint:
    """Point the provider reports for an observation."""
    return GeoPoint(observation.location.lat, observation.location.lon)
