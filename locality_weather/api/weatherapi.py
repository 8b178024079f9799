"""weatherapi.com client for current conditions."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from locality_weather.config import settings
from locality_weather.data.models import FailureKind, ProviderFailure, WeatherObservation
from locality_weather.data.schemas import WeatherApiErrorResponse, WeatherApiResponse
from locality_weather.data.transform import observation_from_payload
from locality_weather.utils.logger import setup_logger
from locality_weather.utils.rate_limiter import RateLimiter

logger = setup_logger(__name__)

ProviderResult = Union[WeatherObservation, ProviderFailure]


class WeatherProvider(ABC):
    """Source of current conditions. Failures are returned, not raised."""

    @abstractmethod
    async def query_by_name(self, name: str) -> ProviderResult:
        """Current conditions for a free-text place name."""

    @abstractmethod
    async def query_by_coordinates(self, latitude: float, longitude: float) -> ProviderResult:
        """Current conditions for a WGS84 point."""


class WeatherApiClient(WeatherProvider):
    """Async client for the weatherapi.com current.json endpoint."""

    CURRENT_ENDPOINT = "/current.json"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = None,
        rate_limit: int = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize weatherapi.com client.

        Args:
            api_key: API key sent as the "key" query parameter
            base_url: API base URL
            rate_limit: Requests per minute limit
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key or settings.weather_api_key
        self.base_url = base_url or settings.weather_api_base_url
        self.rate_limiter = RateLimiter(
            max_requests=rate_limit or settings.weather_api_rate_limit, time_window=60
        )

        if not self.api_key:
            logger.warning("Weather API key not provided. Requests will be rejected.")

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout or settings.weather_api_timeout),
            transport=transport,
        )

    async def _make_request(self, query: str) -> ProviderResult:
        """Fetch current conditions for a provider query string."""
        await self.rate_limiter.wait_if_needed()

        params: Dict[str, Any] = {"q": query, "aqi": "no"}
        if self.api_key:
            params["key"] = self.api_key

        try:
            logger.debug(f"Requesting current weather for {query!r}")
            response = await self.client.get(self.CURRENT_ENDPOINT, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout requesting weather for {query!r}: {e}")
            return ProviderFailure(FailureKind.NETWORK, f"Request timeout: {e}")
        except httpx.RequestError as e:
            logger.error(f"Network error requesting weather for {query!r}: {e}")
            return ProviderFailure(FailureKind.NETWORK, f"Network error: {e}")

        try:
            data = response.json()
        except ValueError:
            data = None

        error_payload = self._parse_error(data)

        if response.is_error:
            message = f"HTTP {response.status_code}"
            provider_code = None
            if error_payload is not None:
                message = f"{message}: {error_payload.error.message}"
                provider_code = error_payload.error.code
            logger.warning(f"Weather request for {query!r} failed: {message}")
            return ProviderFailure(
                FailureKind.HTTP,
                message,
                status_code=response.status_code,
                provider_code=provider_code,
            )

        if error_payload is not None:
            logger.warning(f"Weather API returned error for {query!r}: {error_payload.error.message}")
            return ProviderFailure(
                FailureKind.PROVIDER,
                f"Weather API error: {error_payload.error.message}",
                status_code=response.status_code,
                provider_code=error_payload.error.code,
            )

        if data is None:
            return ProviderFailure(
                FailureKind.PAYLOAD,
                "Response is not valid JSON",
                status_code=response.status_code,
            )

        try:
            payload = WeatherApiResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected weather payload for {query!r}: {e}")
            return ProviderFailure(
                FailureKind.PAYLOAD,
                f"Unexpected response structure: {e.error_count()} validation errors",
                status_code=response.status_code,
            )

        return observation_from_payload(payload)

    @staticmethod
    def _parse_error(data: Any) -> Optional[WeatherApiErrorResponse]:
        if not isinstance(data, dict) or "error" not in data:
            return None
        try:
            return WeatherApiErrorResponse.model_validate(data)
        except ValidationError:
            return None

    async def query_by_name(self, name: str) -> ProviderResult:
        """
        Get current weather by place name.

        Args:
            name: Free-text place name (English preferred)

        Returns:
            WeatherObservation, or ProviderFailure describing what went wrong
        """
        return await self._make_request(name)

    async def query_by_coordinates(self, latitude: float, longitude: float) -> ProviderResult:
        """
        Get current weather by coordinates.

        Args:
            latitude: WGS84 latitude
            longitude: WGS84 longitude

        Returns:
            WeatherObservation, or ProviderFailure describing what went wrong
        """
        return await self._make_request(f"{latitude},{longitude}")

    async def aclose(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
