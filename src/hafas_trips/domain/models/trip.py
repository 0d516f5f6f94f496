"""Trip domain model."""

from dataclasses import dataclass
from datetime import datetime

from hafas_trips.domain.models.leg import IndividualLeg, Leg
from hafas_trips.domain.models.location import Location


@dataclass(frozen=True)
class Trip:
    """One origin-to-destination journey option, made of legs in travel order."""

    id: str | None
    origin: Location | None
    destination: Location | None
    legs: list[Leg]
    num_changes: int

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError("a trip needs at least one leg")

    @property
    def first_departure_location(self) -> Location:
        return self.legs[0].departure_location

    @property
    def last_arrival_location(self) -> Location:
        return self.legs[-1].arrival_location

    @property
    def first_departure_time(self) -> datetime | None:
        return self.legs[0].departure_time

    @property
    def last_arrival_time(self) -> datetime | None:
        return self.legs[-1].arrival_time

    @property
    def is_single_individual_leg(self) -> bool:
        return len(self.legs) == 1 and isinstance(self.legs[0], IndividualLeg)
