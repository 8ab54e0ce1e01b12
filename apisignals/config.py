"""
Configuration management using pydantic-settings.
Policy constants for the evaluators are loaded from environment variables
(prefix APISIGNALS_) so they can be tuned without code changes.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="APISIGNALS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")
    dev_mode: bool = Field(default=False, description="Development mode")

    # Compliance
    at_risk_margin_percent: float = Field(
        default=0.1,
        ge=0.0,
        description="Uptime points above target still flagged as at risk",
    )

    # Error budget
    burn_acceleration_factor: float = Field(
        default=1.2,
        gt=0.0,
        description="Consumption over the linear baseline times this factor is accelerating",
    )
    burn_rate_epsilon: float = Field(
        default=0.01,
        ge=0.0,
        description="Burn rates (%/day) at or below this produce no exhaustion projection",
    )
    budget_warning_percent: float = Field(
        default=50.0, ge=0.0, description="Consumed percent at which a budget is in warning"
    )
    budget_critical_percent: float = Field(
        default=80.0, ge=0.0, description="Consumed percent at which a budget is critical"
    )

    # Incidents
    default_latency_threshold_ms: float = Field(
        default=1000.0,
        gt=0.0,
        description="Latency threshold for root-cause classification when the SLA has none",
    )

    # Period comparison
    comparison_percent_cap: float = Field(
        default=999.0,
        gt=0.0,
        description="Sentinel magnitude reported when the percent change is undefined",
    )

    # Alert history
    alert_history_lookback_days: int = Field(
        default=30, ge=1, le=365, description="Days of alert history used for frequency"
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Ensure log format is a known renderer."""
        if v.lower() not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()

    @field_validator("budget_critical_percent")
    @classmethod
    def validate_budget_tiers(cls, v: float, info) -> float:
        """Critical tier must not sit below the warning tier."""
        warning = info.data.get("budget_warning_percent")
        if warning is not None and v < warning:
            raise ValueError("budget_critical_percent must be >= budget_warning_percent")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
