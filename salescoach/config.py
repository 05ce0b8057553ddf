"""
Centralized Configuration System
Environment-aware settings for storage, logging and scoring calibration.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Dict, Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Production-grade configuration management.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # MONGODB CONFIGURATION
    # ============================================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "salescoach"
    mongodb_max_pool_size: int = 20
    mongodb_min_pool_size: int = 1
    mongodb_server_selection_timeout_ms: int = 5000

    # Every read against the store is bounded by this timeout
    storage_read_timeout_seconds: float = 10.0
    storage_read_limit: int = 10000

    # ============================================
    # ENGINE DEFAULTS
    # ============================================
    default_window_days: int = 30
    default_bcr_window_days: int = 30
    correlation_top_n: int = 3
    team_target_hir: int = 70
    next_best_action_limit: int = 5

    # ============================================
    # SCORING CALIBRATION
    # ============================================
    intensity_ceiling: float = 100.0
    prescription_ceiling_multiplier: float = 2.0
    competitor_names: list[str] = Field(default_factory=list)

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "test", "staging", "production"] = "development"


class ScoringConfig(BaseModel):
    """
    Calibration constants used by the pure scoring functions.

    The defaults are heuristic ceilings, not population baselines. Pass a
    customized instance to any calculator to recalibrate without code changes.
    """
    model_config = ConfigDict(frozen=True)

    intensity_ceiling: float = 100.0
    activity_type_weights: Dict[str, float] = Field(default_factory=lambda: {
        "visit": 3.0,
        "call": 2.0,
        "message": 1.0,
        "presentation": 2.0,
        "follow_up": 1.0,
    })
    default_activity_weight: float = 1.0

    quality_weight: float = 0.4
    quantity_weight: float = 0.3
    follow_up_weight: float = 0.3

    conversion_growth_weight: float = 0.7
    conversion_link_weight: float = 0.3

    field_quantity_weight: float = 0.6
    field_revenue_weight: float = 0.4

    account_type_weights: Dict[str, float] = Field(default_factory=lambda: {
        "general_hospital": 1.5,
        "hospital": 1.2,
        "clinic": 1.0,
        "pharmacy": 0.8,
    })
    default_account_weight: float = 1.0
    prescription_ceiling_multiplier: float = 2.0
    prescription_quantity_weight: float = 0.7
    prescription_growth_weight: float = 0.3
    growth_offset: float = 50.0


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


def get_scoring_config() -> ScoringConfig:
    """Build the scoring calibration from the environment-backed settings."""
    current = get_settings()
    return ScoringConfig(
        intensity_ceiling=current.intensity_ceiling,
        prescription_ceiling_multiplier=current.prescription_ceiling_multiplier,
    )


# Convenience accessor for common use
settings = get_settings()
