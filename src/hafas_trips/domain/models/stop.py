"""Stop domain model."""

from dataclasses import dataclass
from datetime import datetime

from hafas_trips.domain.models.location import Location


@dataclass(frozen=True)
class Stop:
    """A location plus planned and predicted timing at that location.

    Planned and predicted values are independently optional: a missing
    prediction means "no realtime data", never "on time". Departure and
    arrival carry their own cancellation flags.
    """

    location: Location
    planned_arrival_time: datetime | None = None
    predicted_arrival_time: datetime | None = None
    planned_arrival_platform: str | None = None
    predicted_arrival_platform: str | None = None
    arrival_cancelled: bool = False
    planned_departure_time: datetime | None = None
    predicted_departure_time: datetime | None = None
    planned_departure_platform: str | None = None
    predicted_departure_platform: str | None = None
    departure_cancelled: bool = False

    @property
    def arrival_time(self) -> datetime | None:
        """Predicted arrival if known, otherwise planned."""
        return self.predicted_arrival_time or self.planned_arrival_time

    @property
    def departure_time(self) -> datetime | None:
        """Predicted departure if known, otherwise planned."""
        return self.predicted_departure_time or self.planned_departure_time

    @property
    def arrival_delay_seconds(self) -> int | None:
        if self.planned_arrival_time and self.predicted_arrival_time:
            return int((self.predicted_arrival_time - self.planned_arrival_time).total_seconds())
        return None

    @property
    def departure_delay_seconds(self) -> int | None:
        if self.planned_departure_time and self.predicted_departure_time:
            return int(
                (self.predicted_departure_time - self.planned_departure_time).total_seconds()
            )
        return None

    @classmethod
    def departure_stop(
        cls,
        location: Location,
        planned_time: datetime | None,
        predicted_time: datetime | None,
        planned_platform: str | None,
        predicted_platform: str | None,
        cancelled: bool,
    ) -> "Stop":
        """Build a stop used as a leg's departure (departure fields only)."""
        return cls(
            location=location,
            planned_departure_time=planned_time,
            predicted_departure_time=predicted_time,
            planned_departure_platform=planned_platform,
            predicted_departure_platform=predicted_platform,
            departure_cancelled=cancelled,
        )

    @classmethod
    def arrival_stop(
        cls,
        location: Location,
        planned_time: datetime | None,
        predicted_time: datetime | None,
        planned_platform: str | None,
        predicted_platform: str | None,
        cancelled: bool,
    ) -> "Stop":
        """Build a stop used as a leg's arrival (arrival fields only)."""
        return cls(
            location=location,
            planned_arrival_time=planned_time,
            predicted_arrival_time=predicted_time,
            planned_arrival_platform=planned_platform,
            predicted_arrival_platform=predicted_platform,
            arrival_cancelled=cancelled,
        )
