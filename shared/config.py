"""
Shared configuration management for the Lead Scoring engine.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringConfig(BaseSettings):
    """Configuration for the scoring service and its stores."""

    model_config = SettingsConfigDict(
        env_prefix="LEAD_SCORING_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    postgres_dsn: str = Field(default="postgres://localhost:5432/crm")
    postgres_min_pool_size: int = Field(default=2, ge=1)
    postgres_max_pool_size: int = Field(default=10, ge=1)

    # Bulk recompute
    bulk_concurrency: int = Field(default=1, ge=1, le=64)

    # Observability
    enable_metrics_server: bool = Field(default=False)
    metrics_port: int = Field(default=9090)


def get_config(**overrides) -> ScoringConfig:
    """Get configuration, with keyword overrides taking precedence over env."""
    return ScoringConfig(**overrides)
