"""Ports (interfaces) for the ports-and-adapters architecture."""

from hafas_trips.domain.ports.trip_repository import TripRepository

__all__ = ["TripRepository"]
