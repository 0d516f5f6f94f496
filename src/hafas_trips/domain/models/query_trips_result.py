"""Trip query result domain model."""

from dataclasses import dataclass, field
from enum import Enum

from hafas_trips.domain.models.location import Location
from hafas_trips.domain.models.query_trips_context import QueryTripsContext
from hafas_trips.domain.models.trip import Trip


class QueryTripsStatus(Enum):
    """Caller-actionable outcome of a trip query."""

    OK = "ok"
    AMBIGUOUS = "ambiguous"
    SERVICE_CAPACITY = "service_capacity"
    SERVICE_DOWN = "service_down"
    NO_TRIPS = "no_trips"
    UNRESOLVABLE_ADDRESS = "unresolvable_address"
    UNKNOWN_FROM = "unknown_from"
    UNKNOWN_VIA = "unknown_via"
    UNKNOWN_TO = "unknown_to"
    INVALID_DATE = "invalid_date"
    TOO_CLOSE = "too_close"


@dataclass(frozen=True)
class QueryTripsResult:
    """Outcome of decoding one trip-search response."""

    status: QueryTripsStatus
    request_url: str | None = None
    origin: Location | None = None
    via: Location | None = None
    destination: Location | None = None
    context: QueryTripsContext | None = None
    trips: list[Trip] = field(default_factory=list)
    server_version: int | None = None

    @property
    def is_ok(self) -> bool:
        return self.status is QueryTripsStatus.OK
