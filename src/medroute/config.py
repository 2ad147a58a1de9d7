"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="MEDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Emergency Facility Routing API"
    api_prefix: str = "/api"

    catalog_backend: Literal["sample", "file", "overpass"] = Field(
        default="sample",
        description="Source of candidate facilities.",
    )
    facilities_file: Path = Field(
        default=Path("data/facilities.xlsx"),
        description="Facility directory (.xlsx or .csv) used by the file catalog.",
    )
    catalog_max_results: int = Field(default=10, ge=1)
    catalog_search_radius_km: float = Field(default=25.0, gt=0.0)
    overpass_endpoints: tuple[str, ...] = Field(
        default=(
            "https://overpass-api.de/api/interpreter",
            "https://overpass.kumi.systems/api/interpreter",
            "https://lz4.overpass-api.de/api/interpreter",
        ),
        description="Overpass API endpoints tried in order by the live catalog.",
    )
    overpass_timeout_seconds: float = Field(default=12.0, gt=0.0)

    metrics_provider: Literal["simulated", "haversine", "osrm"] = Field(
        default="haversine",
        description="Route metrics source: fixed demo data, straight-line estimate, or live OSRM.",
    )
    average_speed_kmh: float = Field(default=40.0, gt=0.0)
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)
    osrm_timeout_seconds: float = Field(default=4.0, gt=0.0)

    max_parallel_lookups: int = Field(
        default=16,
        ge=1,
        description="Upper bound on concurrent route metrics lookups per request.",
    )
    lookup_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Per-facility lookup timeout; slower candidates are dropped.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:9002",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("facilities_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "overpass_endpoints", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
