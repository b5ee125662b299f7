"""Configuration management."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


def _optional_float(name: str) -> float | None:
    value = os.getenv(name)
    return float(value) if value else None


class Settings(BaseModel):
    """Application settings."""

    # Provider settings
    google_maps_api_key: str | None = Field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY")
    )
    geocoder: str = Field(
        default_factory=lambda: os.getenv("ROADTRIP_GEOCODER", "google")
    )
    nominatim_url: str = Field(
        default_factory=lambda: os.getenv(
            "NOMINATIM_URL", "https://nominatim.openstreetmap.org"
        )
    )
    geocoding_concurrency: int = Field(
        default_factory=lambda: int(os.getenv("ROADTRIP_GEOCODING_CONCURRENCY", "1")),
        ge=1,
    )
    http_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("ROADTRIP_HTTP_TIMEOUT", "30"))
    )
    planning_timeout_s: float | None = Field(
        default_factory=lambda: _optional_float("ROADTRIP_PLANNING_TIMEOUT")
    )
    use_step_geometry: bool = Field(
        default_factory=lambda: os.getenv("ROADTRIP_STEP_GEOMETRY", "").lower() in ("1", "true", "yes")
    )

    # Default trip planning settings
    default_max_daily_distance_km: float = 400.0
    default_fuel_consumption_per_100km: float = 9.0
    default_fuel_price_per_liter: float = 1.75

    # Output settings
    log_level: str = Field(
        default_factory=lambda: os.getenv("ROADTRIP_LOG_LEVEL", "WARNING")
    )
    output_dir: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent / "output"
    )

    def validate_required(self) -> list[str]:
        """Check for missing required configuration."""
        missing = []

        # Directions always go through Google; Nominatim needs no key
        if not self.google_maps_api_key:
            missing.append("GOOGLE_MAPS_API_KEY")

        if self.geocoder not in ("google", "nominatim"):
            missing.append("ROADTRIP_GEOCODER (must be 'google' or 'nominatim')")

        return missing


# Global settings instance
settings = Settings()
