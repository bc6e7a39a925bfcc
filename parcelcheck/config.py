"""Configuration management for the application."""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    api_version: str = "v1"
    host: str = "0.0.0.0"
    port: int = 8000

    # Idempotency cache for POST /snapshot (keyed by idempotencyKey)
    snapshot_cache_max_items: int = 256

    # Septic feasibility thresholds
    septic_min_lot_sqft: float = 7500
    septic_min_water_table_in: float = 36
    septic_steep_slope_pct: float = 30
    septic_moderate_slope_pct: float = 15
    septic_contingency_challenging: float = 1.30
    septic_contingency_conditional: float = 1.15

    # Environmental flag thresholds (fraction of the address seed)
    flood_flag_threshold: float = 0.30
    flood_fail_threshold: float = 0.15
    wetland_flag_threshold: float = 0.25
    slope_flag_threshold: float = 0.20
    buffer_flag_threshold: float = 0.15
    easement_gap_threshold: float = 0.40

    # Zoning fallback when the catalog has no lot_size_min rule
    default_min_lot_size_sqft: float = 7200

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


# Global settings instance
settings = Settings()
