"""Application services (use cases) for trip searches."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from hafas_trips.domain.exceptions import SessionExpiredError
from hafas_trips.domain.models import QueryTripsContext, QueryTripsResult, Trip

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from hafas_trips.domain.ports import TripRepository


def merge_pages(pages: Iterable[QueryTripsResult]) -> list[Trip]:
    """Concatenate the trips of consecutive pages, in page order.

    A trip whose id already appeared on an earlier page is dropped; trips
    without id are always kept.
    """
    merged: list[Trip] = []
    seen_ids: set[str] = set()
    for page in pages:
        for trip in page.trips:
            if trip.id is not None:
                if trip.id in seen_ids:
                    logger.debug(f"Skipping trip {trip.id} already seen on another page")
                    continue
                seen_ids.add(trip.id)
            merged.append(trip)
    return merged


class TripPagingService:
    """Runs one trip search and pages through earlier and later results.

    Holds a single current continuation token: every successful page
    replaces it, and it serves both directions. Pages are kept in
    chronological order, so earlier pages go to the front.
    """

    def __init__(self, trip_repository: "TripRepository") -> None:
        """Initialize with a trip repository."""
        self._trip_repository = trip_repository
        self._context: QueryTripsContext | None = None
        self._pages: list[QueryTripsResult] = []

    @property
    def context(self) -> QueryTripsContext | None:
        return self._context

    @property
    def pages(self) -> list[QueryTripsResult]:
        return list(self._pages)

    @property
    def trips(self) -> list[Trip]:
        """All trips fetched so far, earliest page first."""
        return merge_pages(self._pages)

    async def first_page(self, url: str) -> QueryTripsResult:
        """Start a new search, discarding any previous pages and token."""
        self._context = None
        self._pages = []
        result = await self._trip_repository.query_trips(url)
        self._accept(result, later=True)
        return result

    async def later(self) -> QueryTripsResult:
        return await self._query_more(later=True)

    async def earlier(self) -> QueryTripsResult:
        return await self._query_more(later=False)

    async def _query_more(self, later: bool) -> QueryTripsResult:
        context = self._context
        if context is None:
            raise RuntimeError("No search to continue, request a first page")
        if not context.can_query_more:
            raise RuntimeError("The current search cannot be continued")

        try:
            result = await self._trip_repository.query_more_trips(context, later)
        except SessionExpiredError:
            # The server forgot the search: the token is worthless now.
            self._context = None
            raise

        self._accept(result, later)
        return result

    def _accept(self, result: QueryTripsResult, later: bool) -> None:
        if not result.is_ok:
            logger.info(f"Trip query returned {result.status.value}")
            return
        if result.context is not None:
            self._context = result.context
        if later:
            self._pages.append(result)
        else:
            self._pages.insert(0, result)
