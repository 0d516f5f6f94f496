"""Legacy HAFAS binary trip query adapters."""

from hafas_trips.adapters.hafas_legacy.hafas_trip_repository import HafasTripRepository
from hafas_trips.adapters.hafas_legacy.http_client import HafasHttpClient
from hafas_trips.adapters.hafas_legacy.profile import LegacyProfile, get_profile
from hafas_trips.adapters.hafas_legacy.trip_decoder import TripResponseDecoder

__all__ = [
    "HafasHttpClient",
    "HafasTripRepository",
    "LegacyProfile",
    "TripResponseDecoder",
    "get_profile",
]
