"""data.gov.il CKAN client for the official locality directory."""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from locality_weather.config import settings
from locality_weather.data.schemas import DatastoreResponse, DatastoreResult
from locality_weather.errors import DirectoryFetchError, MalformedDirectoryData
from locality_weather.utils.logger import setup_logger
from locality_weather.utils.rate_limiter import RetryHandler

logger = setup_logger(__name__)


class PlaceDirectoryClient:
    """
    Client for the CKAN datastore_search action.

    The datastore cannot search by partial name, so the whole directory is
    fetched page by page and filtered locally.
    """

    SEARCH_ENDPOINT = "/datastore_search"

    def __init__(
        self,
        base_url: str = None,
        resource_id: str = None,
        page_size: int = None,
        timeout: float = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize directory client.

        Args:
            base_url: CKAN action API base URL
            resource_id: Datastore resource holding the localities
            page_size: Records per request
            timeout: Request timeout in seconds
            max_retries: Retries per page on network or server errors
            retry_delay: Initial backoff delay in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url or settings.directory_api_base_url
        self.resource_id = resource_id or settings.directory_resource_id
        self.page_size = page_size or settings.directory_page_size
        self.retry_handler = RetryHandler(
            max_retries=max_retries,
            initial_delay=retry_delay,
            retry_on=(httpx.TransportError, httpx.HTTPStatusError),
        )

        # Directory responses are large; allow a generous read timeout
        timeout = timeout or settings.directory_timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def _request_page(self, offset: int) -> httpx.Response:
        params = {
            "resource_id": self.resource_id,
            "limit": self.page_size,
            "offset": offset,
        }
        logger.debug(f"Fetching directory page at offset {offset}")
        response = await self.client.get(self.SEARCH_ENDPOINT, params=params)
        # Only server errors are retried; client errors are raised by the caller
        if response.is_server_error:
            response.raise_for_status()
        return response

    async def _fetch_page(self, offset: int) -> DatastoreResult:
        try:
            response = await self.retry_handler.execute(self._request_page, offset)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise DirectoryFetchError(f"HTTP error! status: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DirectoryFetchError(f"Network error fetching directory: {e}") from e
        except ValueError as e:
            raise MalformedDirectoryData(f"Directory response is not valid JSON: {e}") from e

        try:
            body = DatastoreResponse.model_validate(data)
        except ValidationError as e:
            raise DirectoryFetchError(f"Invalid API response structure: {e}") from e

        if not body.success:
            raise DirectoryFetchError("API request was not successful")

        if body.result is None:
            raise DirectoryFetchError("Invalid API response structure: missing result")

        return body.result

    async def fetch(self) -> List[Dict[str, Any]]:
        """
        Fetch every raw directory record.

        Returns:
            Raw record dictionaries in source order

        Raises:
            DirectoryFetchError: On HTTP failure or an unsuccessful response
            MalformedDirectoryData: If a response body is not JSON
        """
        records: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = await self._fetch_page(offset)
            if not page.records:
                break

            records.extend(page.records)
            offset += len(page.records)

            # Servers may cap limit below page_size; total decides when reported
            if page.total is not None:
                if offset >= page.total:
                    break
            elif len(page.records) < self.page_size:
                break

        logger.info(f"Fetched {len(records)} directory records")
        return records

    async def aclose(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
