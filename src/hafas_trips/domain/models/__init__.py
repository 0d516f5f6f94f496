"""Domain models for HAFAS trip queries."""

from hafas_trips.domain.models.error_details import ErrorDetails
from hafas_trips.domain.models.leg import IndividualLeg, IndividualType, Leg, PublicLeg
from hafas_trips.domain.models.line import Line, LineAttr, Product
from hafas_trips.domain.models.location import Location, LocationType, Point
from hafas_trips.domain.models.query_trips_context import QueryTripsContext
from hafas_trips.domain.models.query_trips_result import QueryTripsResult, QueryTripsStatus
from hafas_trips.domain.models.stop import Stop
from hafas_trips.domain.models.trip import Trip

__all__ = [
    "ErrorDetails",
    "IndividualLeg",
    "IndividualType",
    "Leg",
    "Line",
    "LineAttr",
    "Location",
    "LocationType",
    "Point",
    "Product",
    "PublicLeg",
    "QueryTripsContext",
    "QueryTripsResult",
    "QueryTripsStatus",
    "Stop",
    "Trip",
]
