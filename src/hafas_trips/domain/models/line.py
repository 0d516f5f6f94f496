"""Line domain model."""

from dataclasses import dataclass, field
from enum import Enum


class Product(Enum):
    """Transit-mode category of a line."""

    HIGH_SPEED_TRAIN = "high_speed_train"
    REGIONAL_TRAIN = "regional_train"
    SUBURBAN_TRAIN = "suburban_train"
    SUBWAY = "subway"
    TRAM = "tram"
    BUS = "bus"
    ON_DEMAND = "on_demand"
    FERRY = "ferry"
    CABLECAR = "cablecar"
    UNKNOWN = "unknown"


class LineAttr(Enum):
    """Accessibility and carriage attributes of a line."""

    WHEEL_CHAIR_ACCESS = "wheel_chair_access"
    BICYCLE_CARRIAGE = "bicycle_carriage"


@dataclass(frozen=True)
class Line:
    """Represents a public transport line serving a leg."""

    product: Product
    label: str | None
    operator: str | None = None
    comment: str | None = None
    attrs: frozenset[LineAttr] = field(default_factory=frozenset)

    def has_attr(self, attr: LineAttr) -> bool:
        return attr in self.attrs
