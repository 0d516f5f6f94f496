"""Trip repository port."""

from typing import Protocol

from hafas_trips.domain.models.query_trips_context import QueryTripsContext
from hafas_trips.domain.models.query_trips_result import QueryTripsResult


class TripRepository(Protocol):
    """Port for querying trips and paging through further results."""

    async def query_trips(self, url: str) -> QueryTripsResult:
        """Run a prepared trip query URL and decode the first page."""
        ...

    async def query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        """Fetch the next (later) or previous (earlier) page for a search."""
        ...
