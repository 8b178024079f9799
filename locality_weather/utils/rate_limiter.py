"""Rate limiting and retry utilities for async HTTP clients."""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Sliding-window rate limiter."""

    def __init__(self, max_requests: int, time_window: float = 60, time_func=time.monotonic):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum number of requests allowed
            time_window: Time window in seconds (default: 60 for per-minute)
            time_func: Clock used to timestamp requests
        """
        self.max_requests = max_requests
        self.time_window = time_window
        self.time_func = time_func
        self.requests = deque()

    def acquire(self) -> bool:
        """
        Try to acquire permission for a request.

        Returns:
            True if request is allowed, False otherwise
        """
        now = self.time_func()

        # Remove old requests outside the time window
        while self.requests and self.requests[0] <= now - self.time_window:
            self.requests.popleft()

        if len(self.requests) < self.max_requests:
            self.requests.append(now)
            return True

        return False

    async def wait_if_needed(self) -> None:
        """Wait until a request slot is free."""
        while not self.acquire():
            oldest_request = self.requests[0]
            wait_time = self.time_window - (self.time_func() - oldest_request)

            if wait_time > 0:
                logger.info(f"Rate limit reached, waiting {wait_time:.2f} seconds")
                await asyncio.sleep(wait_time)


class RetryHandler:
    """Handle retries with exponential backoff."""

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        backoff_factor: float = 2.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        """
        Initialize retry handler.

        Args:
            max_retries: Maximum number of retry attempts
            initial_delay: Initial delay in seconds
            backoff_factor: Multiplier for delay on each retry
            retry_on: Exception types that trigger a retry; others propagate at once
        """
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.retry_on = retry_on

    async def execute(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Await a coroutine function with retries.

        Args:
            func: Coroutine function to execute
            *args: Positional arguments for function
            **kwargs: Keyword arguments for function

        Returns:
            Function result

        Raises:
            Exception: The last error if all retries fail
        """
        last_exception = None
        delay = self.initial_delay

        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except self.retry_on as e:
                last_exception = e
                error_type = type(e).__name__
                error_msg = str(e)

                if attempt < self.max_retries:
                    logger.warning(
                        f"Attempt {attempt + 1}/{self.max_retries + 1} failed ({error_type}): {error_msg}. Retrying in {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    delay *= self.backoff_factor
                else:
                    logger.error(
                        f"All {self.max_retries + 1} attempts failed. Last error ({error_type}): {error_msg}"
                    )

        raise last_exception
