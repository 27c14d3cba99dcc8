"""Hacker News fetch client.

Performs one GET per resource and decodes the body with the resource's
decoder. Concurrent requests for the same URL share a single in-flight
request; nothing is cached once it completes.
"""

import asyncio
import logging
from typing import TypeVar

import httpx

from src.integrations.hackernews.resource import Resource
from src.stories.error_handling import (
    DecodeError,
    StoriesError,
    TransportError,
    retry_with_backoff,
)
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "hn-top-stories/0.1"


class FetchClient:
    """Async client turning resources into decoded values.

    Usage:
        async with FetchClient() as client:
            ids = await client.fetch(top_stories_resource())
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        backoff_factor: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            http_client: Shared httpx client; one is created (and owned) if None
            timeout: Request timeout in seconds, defaults to API_TIMEOUT
            max_retries: Retries for transient errors, defaults to FETCH_MAX_RETRIES
            retry_delay: Initial retry delay, defaults to FETCH_RETRY_DELAY
            backoff_factor: Retry delay multiplier, defaults to FETCH_BACKOFF_FACTOR
            transport: Transport for the owned httpx client (tests use MockTransport)
        """
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.FETCH_MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.FETCH_RETRY_DELAY
        self.backoff_factor = (
            backoff_factor if backoff_factor is not None else settings.FETCH_BACKOFF_FACTOR
        )

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )
        self._in_flight: dict[str, asyncio.Future] = {}
        self._get_body = retry_with_backoff(
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            backoff_factor=self.backoff_factor,
            exceptions=(TransportError,),
        )(self._request)

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    @property
    def in_flight_count(self) -> int:
        """Number of distinct URLs currently being requested."""
        return len(self._in_flight)

    async def fetch(self, resource: Resource[T]) -> T | None:
        """Load and decode a resource, collapsing every failure to None.

        Args:
            resource: Resource to load

        Returns:
            Decoded value, or None on transport or decode failure
        """
        try:
            return await self.load(resource)
        except StoriesError as e:
            logger.warning(
                "Dropping %s: %s",
                type(e).__name__, e,
                extra={"location": resource.location},
            )
            return None

    async def load(self, resource: Resource[T]) -> T:
        """Load and decode a resource.

        Raises:
            TransportError: If the request failed or returned a non-2xx status
            DecodeError: If the body did not decode to a value
        """
        body = await self._shared_body(resource.location)
        value = resource.decode(body)
        if value is None:
            raise DecodeError("Payload did not match the expected shape", resource.location)
        return value

    async def _shared_body(self, location: str) -> bytes:
        future = self._in_flight.get(location)
        if future is None:
            future = asyncio.ensure_future(self._get_body(location))
            self._in_flight[location] = future
            future.add_done_callback(lambda f: self._forget(location, f))
        else:
            logger.debug("Joining in-flight request", extra={"location": location})
        # One caller being cancelled must not cancel the request for the others
        return await asyncio.shield(future)

    def _forget(self, location: str, future: asyncio.Future) -> None:
        if self._in_flight.get(location) is future:
            del self._in_flight[location]
        if not future.cancelled():
            # Avoid "exception was never retrieved" when every waiter was cancelled
            future.exception()

    async def _request(self, location: str) -> bytes:
        try:
            response = await self._http.get(location, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code}",
                location,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}", location) from e
        return response.content


__all__ = ["FetchClient"]
