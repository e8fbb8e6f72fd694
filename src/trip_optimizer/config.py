"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPOPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Trip Optimizer API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level configured by the app factory.")
    default_transport_mode: Literal["walk", "bike", "auto", "bus"] = Field(
        default="auto",
        description="Transport mode applied to candidate routes when a request names none.",
    )
    sentinel_distance_km: float = Field(
        default=999.0,
        gt=0.0,
        description="Penalty distance substituted for pairs involving an invalid coordinate.",
    )
    ga_parameter_profile: Literal["adaptive", "extended"] = Field(
        default="extended",
        description="Genetic algorithm sizing: clamped adaptive defaults or the wider trip-planner profile.",
    )
    ga_seed: Optional[int] = Field(default=None, description="Seed for the genetic algorithm random source.")
    include_road_network_candidate: bool = Field(
        default=True,
        description="Consult the external trip service for an extra road-network candidate.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "cycling", "foot"] = Field(
        default="driving",
        description="OSRM profile to use when requesting optimized trips.",
    )
    osrm_timeout_seconds: float = Field(default=10.0, gt=0.0)
    osrm_max_retries: int = Field(default=0, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

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

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().rstrip("/")
        return text or None


settings = Settings()
