"""Configuration management for the project."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Weather provider (weatherapi.com)
    weather_api_base_url: str = Field(
        default="https://api.weatherapi.com/v1", env="WEATHER_API_BASE_URL"
    )
    weather_api_key: Optional[str] = Field(default=None, env="WEATHER_API_KEY")
    weather_api_rate_limit: int = Field(default=60, env="WEATHER_API_RATE_LIMIT")
    weather_api_timeout: float = Field(default=10.0, env="WEATHER_API_TIMEOUT")
    expected_country: str = Field(default="Israel", env="EXPECTED_COUNTRY")

    # Locality directory (data.gov.il CKAN datastore)
    directory_api_base_url: str = Field(
        default="https://data.gov.il/api/3/action", env="DIRECTORY_API_BASE_URL"
    )
    directory_resource_id: str = Field(
        default="e9701dcb-9f1c-43bb-bd44-eb380ade542f", env="DIRECTORY_RESOURCE_ID"
    )
    directory_page_size: int = Field(default=1000, env="DIRECTORY_PAGE_SIZE")
    directory_timeout: float = Field(default=30.0, env="DIRECTORY_TIMEOUT")

    # Cache
    cache_dir: str = Field(default="./cache", env="CACHE_DIR")
    directory_cache_key: str = Field(
        default="israeli_locations_cache", env="DIRECTORY_CACHE_KEY"
    )
    directory_cache_ttl_seconds: int = Field(
        default=24 * 60 * 60, env="DIRECTORY_CACHE_TTL_SECONDS"
    )
    observation_cache_ttl_seconds: int = Field(
        default=30 * 60, env="OBSERVATION_CACHE_TTL_SECONDS"
    )
    observation_cache_max_entries: int = Field(
        default=50, env="OBSERVATION_CACHE_MAX_ENTRIES"
    )

    # Search
    max_search_results: int = Field(default=50, env="MAX_SEARCH_RESULTS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
