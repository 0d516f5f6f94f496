"""HTTP client for legacy HAFAS binary trip queries."""

import logging
from typing import TYPE_CHECKING

import aiohttp

from hafas_trips.adapters.api_request_logger import (
    build_url_with_params,
    log_api_request,
    log_api_response,
)
from hafas_trips.domain.exceptions import TripServiceHttpError
from hafas_trips.domain.models.error_details import ErrorDetails

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from aiohttp import ClientResponse, ClientSession

REQUEST_HEADERS = {"Accept-Encoding": "gzip"}


class HafasHttpClient:
    """Fetches the raw (GZIP) body of one trip query; decoding happens elsewhere."""

    def __init__(self, session: "ClientSession | None" = None, timeout: float = 15.0) -> None:
        """Initialize with optional aiohttp session and request timeout in seconds."""
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _read_body(self, response: "ClientResponse", url: str) -> bytes:
        if response.status != 200:
            response_text = await response.text()
            details = ErrorDetails(
                status_code=response.status,
                request_url=url,
                reason=f"HAFAS returned status {response.status}: {response_text[:200]}",
            )
            logger.error(details.reason)
            raise TripServiceHttpError(details)

        body = await response.read()
        log_api_response(url, response.status, len(body))
        return body

    async def fetch(self, url: str, params: dict[str, str] | None = None) -> bytes:
        """GET ``url`` and return the complete response body.

        Args:
            url: Query or continuation endpoint.
            params: Query parameters appended in the given order.

        Returns:
            The raw body, usually GZIP-compressed.

        Raises:
            TripServiceHttpError: On a non-200 answer.
        """
        if not self._session:
            raise RuntimeError("HAFAS trip queries require an aiohttp session")

        full_url = build_url_with_params(url, params)
        log_api_request("GET", url, params=params, headers=REQUEST_HEADERS)

        try:
            async with self._session.get(
                url, params=params, headers=REQUEST_HEADERS, timeout=self._timeout
            ) as response:
                return await self._read_body(response, full_url)
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching trips from {full_url}: {e}")
            raise
