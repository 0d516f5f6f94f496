"""Mapping of server fault codes and building of the continuation token."""

import logging

from hafas_trips.domain.exceptions import (
    SessionExpiredError,
    SessionExpiredReason,
    UnknownFaultError,
)
from hafas_trips.domain.models.query_trips_context import QueryTripsContext
from hafas_trips.domain.models.query_trips_result import QueryTripsResult, QueryTripsStatus
from hafas_trips.domain.models.trip import Trip

logger = logging.getLogger(__name__)

SESSION_EXPIRED_CODES = frozenset(
    {
        1,
        2,  # F2: search results could not be stored internally
    }
)

FAULT_STATUSES: dict[int, QueryTripsStatus] = {
    8: QueryTripsStatus.AMBIGUOUS,
    13: QueryTripsStatus.SERVICE_CAPACITY,  # IN13: too many users at the same time
    19: QueryTripsStatus.SERVICE_DOWN,
    207: QueryTripsStatus.SERVICE_DOWN,  # H207: request can currently not be processed
    65535: QueryTripsStatus.SERVICE_DOWN,
    887: QueryTripsStatus.NO_TRIPS,  # H887: inquiry too complex
    890: QueryTripsStatus.NO_TRIPS,  # H890: no connections found
    891: QueryTripsStatus.NO_TRIPS,  # H891: no route, missing timetable data
    892: QueryTripsStatus.NO_TRIPS,  # H892: inquiry too complex
    899: QueryTripsStatus.NO_TRIPS,  # H899: incomplete search, timetable change
    900: QueryTripsStatus.NO_TRIPS,
    9240: QueryTripsStatus.NO_TRIPS,  # H9240: origin or destination not served
    9220: QueryTripsStatus.UNRESOLVABLE_ADDRESS,  # H9220: no stations near the address
    9260: QueryTripsStatus.UNKNOWN_FROM,
    9280: QueryTripsStatus.UNKNOWN_VIA,
    9300: QueryTripsStatus.UNKNOWN_TO,
    9320: QueryTripsStatus.INVALID_DATE,  # input incorrect or incomplete
    9360: QueryTripsStatus.INVALID_DATE,
    9380: QueryTripsStatus.TOO_CLOSE,  # H9380: station defined more than once
    895: QueryTripsStatus.TOO_CLOSE,  # H895: departure and arrival too near
}


def classify_fault(fault_code: int, request_url: str | None) -> QueryTripsStatus:
    """Map a non-zero fault code to an outcome.

    Raises:
        SessionExpiredError: For the session fault codes.
        UnknownFaultError: For any code outside the known taxonomy.
    """
    if fault_code in SESSION_EXPIRED_CODES:
        raise SessionExpiredError(SessionExpiredReason.FAULT_CODE, fault_code=fault_code)
    status = FAULT_STATUSES.get(fault_code)
    if status is None:
        raise UnknownFaultError(fault_code, request_url)
    return status


def fault_result(
    fault_code: int, request_url: str | None, server_version: int | None = None
) -> QueryTripsResult:
    logger.debug(f"Hafas error: {fault_code}")
    status = classify_fault(fault_code, request_url)
    return QueryTripsResult(status=status, request_url=request_url, server_version=server_version)


def can_query_more(trips: list[Trip]) -> bool:
    """False only when the result is one trip made of one individual leg."""
    return not (len(trips) == 1 and trips[0].is_single_individual_leg)


def build_context(
    ident: str | None,
    seq_nr: int,
    ld: str | None,
    used_buffer_size: int,
    trips: list[Trip],
) -> QueryTripsContext:
    return QueryTripsContext(
        ident=ident,
        seq_nr=seq_nr,
        ld=ld,
        used_buffer_size=used_buffer_size,
        can_query_more=can_query_more(trips),
    )
