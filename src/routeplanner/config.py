"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEPLANNER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Route Planner API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted route outputs.")
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service used to enrich routes with road metrics.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing road distances.",
    )
    osrm_timeout_seconds: float = Field(default=10.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)
    osrm_max_concurrent_requests: int = Field(default=8, ge=1)
    fallback_speed_kmh: float = Field(
        default=60.0,
        gt=0.0,
        description="Average speed used to estimate durations from straight-line distances.",
    )

    aco_alpha: float = Field(default=1.0, ge=0.0)
    aco_beta: float = Field(default=2.5, ge=0.0)
    aco_evaporation_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    aco_q: float = Field(default=100.0, gt=0.0)
    aco_max_ants: int = Field(default=20, ge=1)
    aco_max_iterations: int = Field(default=100, ge=1)
    tabu_max_iterations: int = Field(default=200, ge=0)
    cluster_max_iterations: int = Field(default=20, ge=1)
    cluster_tolerance: float = Field(default=1e-6, ge=0.0)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for the route construction heuristic. Unset means a fresh seed per request.",
    )

    default_depot_name: str = "Depot"
    default_depot_latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    default_depot_longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
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

    @property
    def has_default_depot(self) -> bool:
        return self.default_depot_latitude is not None and self.default_depot_longitude is not None


settings = Settings()
