"""Adapters layer - external system integrations."""

from hafas_trips.adapters.config import AppConfig
from hafas_trips.adapters.hafas_legacy import HafasTripRepository, TripResponseDecoder

__all__ = [
    "AppConfig",
    "HafasTripRepository",
    "TripResponseDecoder",
]
