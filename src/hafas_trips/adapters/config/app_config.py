"""12-factor configuration adapter using environment variables and TOML config."""

import re
import tomllib
from pathlib import Path
from typing import Any

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hafas_trips.adapters.hafas_legacy.profile import PROFILES, LegacyProfile, get_profile
from hafas_trips.domain.models.line import Product


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles.

    Every field can be set through a ``HAFAS_``-prefixed environment variable
    or a ``.env`` file, e.g. ``HAFAS_QUERY_ENDPOINT``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HAFAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoint configuration
    query_endpoint: str = Field(
        default="https://reiseauskunft.bahn.de/bin/query.exe",
        description="Legacy query endpoint, the API language is appended for continuations",
    )
    api_language: str = Field(default="dn", description="API language suffix, e.g. 'dn' or 'en'")
    client_type: str | None = Field(
        default="ANDROID", description="Client type sent with continuation requests"
    )
    request_timeout: int = Field(default=15, description="Timeout for trip queries in seconds")

    # Decoding configuration
    default_buffer_size: int = Field(
        default=384 * 1024,
        description="Decompressed bytes read in one pass before the first page",
    )
    profile: str = Field(
        default="default", description=f"Network profile: one of {', '.join(PROFILES)}"
    )
    dominant_plan_stop_time: bool | None = Field(
        default=None,
        description="Override whether stop predictions require both planned times",
    )

    # TOML config file path
    config_file: str | None = Field(
        default=None,
        description="Path to TOML file with a [profile] section overriding profile details",
    )

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, v: str) -> str:
        """Validate the profile name is known."""
        if v.lower() not in PROFILES:
            raise ValueError(f"profile must be one of: {', '.join(PROFILES)}")
        return v.lower()

    @field_validator("default_buffer_size", "request_timeout")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("api_language")
    @classmethod
    def validate_api_language(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("api_language must not be empty")
        return v

    @property
    def continuation_endpoint(self) -> str:
        """Endpoint for earlier/later requests: query endpoint plus API language."""
        return f"{self.query_endpoint.rstrip('/')}/{self.api_language}"

    def _load_toml_data(self) -> dict[str, Any]:
        """Load and parse the TOML file."""
        if not self.config_file:
            raise ValueError("config_file must be set to load profile overrides")

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "rb") as f:
            return tomllib.load(f)

    def get_profile_overrides(self) -> dict[str, Any]:
        """Return the [profile] section of the TOML file, empty without a file."""
        if not self.config_file:
            return {}
        section = self._load_toml_data().get("profile", {})
        if not isinstance(section, dict):
            raise ValueError("TOML config 'profile' must be a table")
        return section

    def build_profile(self) -> LegacyProfile:
        """Instantiate the configured profile and apply TOML and env overrides.

        Supported keys in the [profile] section:
        - ``timezone``: IANA name, e.g. "Europe/Vienna"
        - ``products``: product names per class bit, least significant first,
          "" for an unused bit
        - ``station_name_split``: table with ``pattern``, ``place_group``, ``name_group``
        - ``dominant_plan_stop_time``: bool
        """
        profile = get_profile(self.profile)
        overrides = self.get_profile_overrides()

        if "timezone" in overrides:
            try:
                profile.timezone = pytz.timezone(overrides["timezone"])
            except pytz.UnknownTimeZoneError as e:
                raise ValueError(f"Unknown timezone in profile: {overrides['timezone']}") from e

        if "products" in overrides:
            profile.products_map = tuple(
                self._parse_product(name) for name in overrides["products"]
            )

        if "station_name_split" in overrides:
            split = overrides["station_name_split"]
            try:
                profile.station_name_split = (
                    re.compile(split["pattern"]),
                    int(split.get("place_group", 1)),
                    int(split.get("name_group", 2)),
                )
            except (KeyError, re.error) as e:
                raise ValueError(f"Invalid station_name_split in profile: {e}") from e

        if "dominant_plan_stop_time" in overrides:
            profile.dominant_plan_stop_time = bool(overrides["dominant_plan_stop_time"])
        if self.dominant_plan_stop_time is not None:
            profile.dominant_plan_stop_time = self.dominant_plan_stop_time

        return profile

    @staticmethod
    def _parse_product(name: str) -> Product | None:
        if not name:
            return None
        try:
            return Product[name.upper()]
        except KeyError as e:
            raise ValueError(f"Unknown product in profile: {name}") from e
