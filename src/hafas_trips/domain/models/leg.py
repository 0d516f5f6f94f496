"""Leg domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from hafas_trips.domain.models.line import Line
from hafas_trips.domain.models.location import Location
from hafas_trips.domain.models.stop import Stop


class IndividualType(Enum):
    """Mode of an individual (non-scheduled) movement."""

    WALK = "walk"
    TRANSFER = "transfer"
    BIKE = "bike"
    CAR = "car"


@dataclass(frozen=True)
class PublicLeg:
    """A ride on a scheduled transit line."""

    line: Line
    direction: Location | None
    departure: Stop
    arrival: Stop
    intermediate_stops: list[Stop] = field(default_factory=list)
    message: str | None = None

    @property
    def departure_location(self) -> Location:
        return self.departure.location

    @property
    def arrival_location(self) -> Location:
        return self.arrival.location

    @property
    def departure_time(self) -> datetime | None:
        return self.departure.departure_time

    @property
    def arrival_time(self) -> datetime | None:
        return self.arrival.arrival_time


@dataclass(frozen=True)
class IndividualLeg:
    """A walk, transfer, bike or car movement between two locations."""

    type: IndividualType
    departure_location: Location
    departure_time: datetime | None
    arrival_location: Location
    arrival_time: datetime | None

    def extended_to(self, other: "IndividualLeg") -> "IndividualLeg":
        """Coalesce with a directly following leg of the same mode."""
        return IndividualLeg(
            type=self.type,
            departure_location=self.departure_location,
            departure_time=self.departure_time,
            arrival_location=other.arrival_location,
            arrival_time=other.arrival_time,
        )


Leg = PublicLeg | IndividualLeg
