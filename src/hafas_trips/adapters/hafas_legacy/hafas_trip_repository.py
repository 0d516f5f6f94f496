"""Legacy HAFAS trip repository adapter."""

import logging
from typing import TYPE_CHECKING

from hafas_trips.adapters.api_request_logger import build_url_with_params
from hafas_trips.adapters.hafas_legacy.http_client import HafasHttpClient
from hafas_trips.adapters.hafas_legacy.profile import LegacyProfile
from hafas_trips.adapters.hafas_legacy.trip_decoder import TripResponseDecoder
from hafas_trips.domain.exceptions import SessionExpiredError, TripQueryError
from hafas_trips.domain.models.query_trips_context import QueryTripsContext
from hafas_trips.domain.models.query_trips_result import QueryTripsResult
from hafas_trips.domain.ports.trip_repository import TripRepository

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from hafas_trips.adapters.config.app_config import AppConfig

SCROLL_LATER = "1"
SCROLL_EARLIER = "2"


class HafasTripRepository(TripRepository):
    """Adapter querying a legacy HAFAS endpoint for binary trip results."""

    def __init__(
        self,
        config: "AppConfig",
        session: "ClientSession | None" = None,
        profile: LegacyProfile | None = None,
        http_client: HafasHttpClient | None = None,
    ) -> None:
        """Initialize with configuration and optional aiohttp session.

        Args:
            config: Endpoint and decoding settings.
            session: Optional aiohttp session for HTTP connections.
            profile: Network profile; built from the config if not given.
            http_client: Optional client instance (for sharing or testing).
        """
        self._config = config
        self._http_client = http_client or HafasHttpClient(
            session=session, timeout=self._config.request_timeout
        )
        self._decoder = TripResponseDecoder(profile or self._config.build_profile())

    async def query_trips(self, url: str) -> QueryTripsResult:
        body = await self._http_client.fetch(url)
        return self._decode(body, url, self._config.default_buffer_size, continuation=False)

    async def query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        """Fetch the page after (later) or before (earlier) the one ``context`` came from."""
        url = self._config.continuation_endpoint
        params = self.continuation_params(context, later)
        body = await self._http_client.fetch(url, params)
        return self._decode(
            body,
            build_url_with_params(url, params),
            context.next_buffer_size(self._config.default_buffer_size),
            continuation=True,
        )

    def continuation_params(self, context: QueryTripsContext, later: bool) -> dict[str, str]:
        """Query parameters echoing the continuation token, in wire order."""
        params = {
            "seqnr": str(context.seq_nr),
            "ident": context.ident or "",
        }
        if context.ld is not None:
            params["ld"] = context.ld
        params["REQ0HafasScrollDir"] = SCROLL_LATER if later else SCROLL_EARLIER
        params["h2g-direct"] = "11"
        if self._config.client_type is not None:
            params["clientType"] = self._config.client_type
        return params

    def _decode(
        self, body: bytes, request_url: str, size_hint: int, continuation: bool
    ) -> QueryTripsResult:
        try:
            return self._decoder.decode_body(
                body, request_url, size_hint=size_hint, continuation=continuation
            )
        except SessionExpiredError as e:
            logger.warning(f"Search session expired for {request_url}: {e}")
            raise
        except TripQueryError as e:
            logger.error(f"Error decoding trips from {request_url}: {e}")
            raise
