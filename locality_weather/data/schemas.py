"""Pydantic schemas for provider payloads and the persisted directory snapshot."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


# weatherapi.com current.json


class WeatherApiLocation(BaseModel):
    name: str
    region: str = ""
    country: str
    lat: float
    lon: float
    tz_id: str = ""
    localtime_epoch: int = 0
    localtime: str = ""


class WeatherApiCondition(BaseModel):
    text: str
    icon: str = ""
    code: int = 0


class WeatherApiCurrent(BaseModel):
    last_updated: str
    temp_c: float
    temp_f: float
    condition: WeatherApiCondition
    wind_mph: float
    wind_kph: float
    wind_dir: str
    pressure_mb: float
    pressure_in: float
    humidity: int
    vis_km: float
    vis_miles: float


class WeatherApiResponse(BaseModel):
    """Successful current-conditions payload. Unused fields are ignored."""

    location: WeatherApiLocation
    current: WeatherApiCurrent


class WeatherApiErrorBody(BaseModel):
    code: int = 0
    message: str = ""


class WeatherApiErrorResponse(BaseModel):
    error: WeatherApiErrorBody


# data.gov.il CKAN datastore_search


class DatastoreResult(BaseModel):
    records: List[Dict[str, Any]]
    total: Optional[int] = None


class DatastoreResponse(BaseModel):
    success: bool
    result: Optional[DatastoreResult] = None


# Persisted directory snapshot


class StoredPlaceRecord(BaseModel):
    """Stored form of a PlaceRecord. Unknown keys mean an older format."""

    model_config = ConfigDict(extra="forbid")

    symbol_number: int
    name_hebrew: str
    name_english: str
    x: Optional[float] = None
    y: Optional[float] = None


class DirectorySnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    records: List[StoredPlaceRecord]
    timestamp: float
