"""Settings for the lane analytics service."""

from pathlib import Path
from typing import Any, Literal

import json
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine thresholds and service options, overridable through LASTMILE_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="LASTMILE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Last-Mile Lane Analytics API"
    api_prefix: str = "/api"
    shipments_file: Path = Field(
        default=Path("data/shipments.csv"),
        description="Shipment dataset (.csv or .xlsx) feeding the lane engine.",
    )

    # Classifier policy. Ranges are inclusive on the lower bound and exclusive on the upper.
    low_volume_floor: int = Field(default=10, ge=1, description="Lanes below this volume are Low Volume / Mixed.")
    early_band_min: float = Field(default=-2.0, description="Lower bound of the early mean-delay band (days).")
    early_band_max: float = Field(default=-0.5, description="Upper bound of the early mean-delay band (days).")
    stable_variance_max: float = Field(default=2.0, ge=0.0, description="Delay variance below this is stable.")
    reliable_on_time_min: float = Field(default=0.80, ge=0.0, le=1.0)
    jitter_variance_min: float = Field(default=3.5, ge=0.0, description="Delay variance above this is jitter.")
    sla_on_time_min: float = Field(default=0.60, ge=0.0, le=1.0)
    late_grace_days: int = Field(
        default=0,
        ge=0,
        description="Days past goal tolerated before a shipment counts as Late.",
    )

    similarity_metric: Literal["euclidean", "manhattan", "cosine"] = "euclidean"
    similarity_default_k: int = Field(default=10, ge=1)
    similarity_max_k: int = Field(default=100, ge=1)

    friction_min_volume: int = Field(default=100, ge=0)
    terminal_min_volume: int = Field(default=50, ge=0)
    early_materiality_days: float = Field(default=0.5, ge=0.0)
    terminal_weight_on_time: float = Field(default=0.6, ge=0.0)
    terminal_weight_delay: float = Field(default=0.25, ge=0.0)
    terminal_weight_variance: float = Field(default=0.15, ge=0.0)
    terminal_delay_scale_days: float = Field(default=3.0, gt=0.0)

    region_code_pattern: str = Field(default=r"^[A-Za-z0-9_-]{1,16}$")
    aggregation_workers: int = Field(default=1, ge=1)
    cache_retry_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="After a failed rebuild, serve the previous snapshot this long before retrying.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Browser origins allowed by CORS.",
    )

    @field_validator("shipments_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> tuple[str, ...]:
        """Accept a JSON array or a comma-separated list of origins."""
        if isinstance(value, str):
            text = value.strip()
            value = json.loads(text) if text.startswith("[") else text.split(",")
        return tuple(origin for origin in (str(item).strip() for item in value or ()) if origin)

    @model_validator(mode="after")
    def _check_bands(self) -> "Settings":
        if self.early_band_min >= self.early_band_max:
            raise ValueError(
                f"early_band_min ({self.early_band_min}) must be below early_band_max ({self.early_band_max})"
            )
        if self.early_band_max > 0:
            raise ValueError("early_band_max must not be positive; the early band describes early arrivals")
        if self.similarity_default_k > self.similarity_max_k:
            raise ValueError("similarity_default_k cannot exceed similarity_max_k")
        return self


settings = Settings()
