"""Location domain model."""

from dataclasses import dataclass
from enum import Enum

from hafas_trips.domain.models.line import Product


class LocationType(Enum):
    """Kind of place a location refers to."""

    STATION = "station"
    ADDRESS = "address"
    POI = "poi"
    COORD = "coord"
    ANY = "any"  # unresolved, e.g. a direction given only as text


@dataclass(frozen=True)
class Point:
    """Fixed-point coordinate in micro-degrees (1E6)."""

    lat_e6: int
    lon_e6: int

    @property
    def latitude(self) -> float:
        return self.lat_e6 / 1e6

    @property
    def longitude(self) -> float:
        return self.lon_e6 / 1e6


@dataclass(frozen=True)
class Location:
    """Represents a place a trip can start, end or pass through."""

    type: LocationType
    id: str | None = None
    place: str | None = None
    name: str | None = None
    coord: Point | None = None
    products: frozenset[Product] | None = None

    def display_name(self) -> str:
        """Name with place prefix, as shown to a traveller."""
        if self.place and self.name:
            return f"{self.place}, {self.name}"
        return self.name or self.place or ""
