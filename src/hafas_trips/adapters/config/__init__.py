"""Configuration adapters."""

from hafas_trips.adapters.config.app_config import AppConfig

__all__ = ["AppConfig"]
