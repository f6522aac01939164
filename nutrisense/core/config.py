"""
Core configuration management using Pydantic Settings.
Follows 12-factor app principles for environment-based configuration.

Heuristic weights and thresholds used by the engines live in ``EngineTuning``
so they can be tuned per deployment without touching algorithm code.
"""

from typing import Dict, List, Tuple
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResolverTuning(BaseModel):
    """Weights used when scoring a resolved consumption log."""

    base: float = 0.15
    completeness_weight: float = 0.35
    profile_confidence_weight: float = 0.25
    recency_weight: float = 0.15
    source_weight: float = 0.10

    min_servings: float = 0.1
    recency_half_life_days: float = 120.0
    recency_floor: float = 0.5
    explicit_confidence_floor: float = 0.2

    # Used when no nutrition profile exists for the consumed item
    missing_profile_confidence: float = 0.45
    missing_profile_recency: float = 0.45

    source_prior: Dict[str, float] = Field(
        default_factory=lambda: {
            "label_scan": 0.92,
            "barcode_api": 0.92,
            "manual": 0.82,
        }
    )
    default_source_prior: float = 0.68

    source_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "label_scan": 0.96,
            "barcode_api": 0.93,
            "manual": 0.82,
            "ai_inferred": 0.72,
        }
    )
    unknown_source_weight: float = 0.5


class AnalyticsTuning(BaseModel):
    """Window sizes and weights for the nutrition analytics snapshot."""

    default_window_days: int = 56
    recent_window: int = 7
    p90: float = 0.9

    anomaly_min_points: int = 7
    anomaly_z_threshold: float = 2.2

    log_confidence_weight: float = 0.65
    profile_confidence_weight: float = 0.35

    day_coverage_weight: float = 0.35
    macro_coverage_weight: float = 0.25
    profile_match_weight: float = 0.20
    confidence_blend_weight: float = 0.20


class ModelerTuning(BaseModel):
    """Weights for per-item consumption models."""

    default_window_days: int = 42
    row_confidence_weight: float = 0.6
    volume_weight: float = 0.25
    stability_weight: float = 0.15
    full_volume_rows: int = 14


class AlertTuning(BaseModel):
    """Thresholds for nutrient deviation and expiry alerts."""

    reliability_floor: float = 0.35
    low_trust_reliability: float = 0.4
    low_trust_magnitude: float = 0.9

    deficiency_keys: Tuple[str, ...] = ("protein", "fiber", "calories")
    excess_keys: Tuple[str, ...] = ("sugar", "sodium")
    deficiency_gap: float = -0.2
    excess_gap: float = 0.2

    z_score_weight: float = 0.16
    critical_magnitude: float = 1.1
    high_magnitude: float = 0.8
    medium_magnitude: float = 0.45
    low_magnitude: float = 0.25

    expiry_horizon_days: int = 3
    expiry_imminent_days: int = 1
    expiry_lookback_days: int = 7

    # Suppression key is (type, nutrient, severity) unless switched off
    dedup_includes_severity: bool = True


class EngineTuning(BaseModel):
    """All engine heuristics in one overridable bundle."""

    resolver: ResolverTuning = Field(default_factory=ResolverTuning)
    analytics: AnalyticsTuning = Field(default_factory=AnalyticsTuning)
    modeler: ModelerTuning = Field(default_factory=ModelerTuning)
    alerts: AlertTuning = Field(default_factory=AlertTuning)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="NUTRISENSE_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "NutriSense Reliability & Alerting Engine"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]

    # Database
    database_url: str = "sqlite:///./nutrisense.db"
    database_echo: bool = False

    # Engine heuristics
    tuning: EngineTuning = Field(default_factory=EngineTuning)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment values."""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper()


# Global settings instance
settings = Settings()


# Environment-specific configurations
class DevelopmentConfig(Settings):
    """Development environment configuration."""
    debug: bool = True
    log_level: str = "DEBUG"
    log_json: bool = False


class ProductionConfig(Settings):
    """Production environment configuration."""
    debug: bool = False
    log_level: str = "WARNING"

    @field_validator("database_url")
    @classmethod
    def validate_database_production(cls, v):
        """Refuse in-memory databases in production."""
        if ":memory:" in v:
            raise ValueError("In-memory database is not allowed in production")
        return v


def get_settings() -> Settings:
    """Factory function to get environment-specific settings."""
    env = settings.environment.lower()

    if env == "production":
        return ProductionConfig()
    elif env == "development":
        return DevelopmentConfig()
    else:
        return Settings()
