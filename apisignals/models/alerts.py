"""
Threshold alert models.

This module defines the alert configuration supplied by the configuration
store, the alert history events used to derive trigger frequency, and the
health score the AlertHealthScorer produces.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import AlertEventType, AlertStatus, HealthLevel
from .timestamps import to_naive_utc


class AlertDefinition(BaseModel):
    """
    A configured threshold alert.

    Attributes:
        id: Alert identifier
        name: Display name
        is_enabled: Whether the alert is evaluated
        evaluation_window_minutes: Window the threshold is evaluated over
        cooldown_minutes: Minimum gap between repeated notifications
        notify_on_trigger: Send a notification when the alert fires
        notify_on_resolve: Send a notification when the alert clears
        last_triggered_at: When the alert last fired, if ever
        status: Current alert state
        created_at: When the alert was created
    """

    id: str = Field(default="", description="Alert identifier")
    name: str = Field(default="", description="Display name")
    is_enabled: bool = Field(default=True, description="Whether the alert is evaluated")
    evaluation_window_minutes: int = Field(
        ge=0, description="Window the threshold is evaluated over"
    )
    cooldown_minutes: int = Field(
        ge=0, description="Minimum gap between repeated notifications"
    )
    notify_on_trigger: bool = Field(default=True, description="Notify when the alert fires")
    notify_on_resolve: bool = Field(default=False, description="Notify when the alert clears")
    last_triggered_at: Optional[datetime] = Field(
        default=None, description="When the alert last fired"
    )
    status: AlertStatus = Field(default=AlertStatus.ACTIVE, description="Current alert state")
    created_at: datetime = Field(description="When the alert was created")

    @field_validator("created_at", "last_triggered_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store timestamps as naive UTC."""
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_triggered_after_created(self) -> "AlertDefinition":
        """An alert cannot fire before it exists."""
        if self.last_triggered_at is not None and self.last_triggered_at < self.created_at:
            raise ValueError("last_triggered_at cannot precede created_at")
        return self

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "id": "alert_p95_checkout",
                "name": "Checkout p95 latency",
                "is_enabled": True,
                "evaluation_window_minutes": 10,
                "cooldown_minutes": 30,
                "notify_on_trigger": True,
                "notify_on_resolve": True,
                "last_triggered_at": "2026-10-16T09:30:00",
                "status": "active",
                "created_at": "2026-09-01T00:00:00",
            }
        }


class AlertHistoryEvent(BaseModel):
    """One entry in an alert's history store."""

    event_type: AlertEventType
    created_at: datetime
    metric_value: Optional[float] = None
    threshold_value: Optional[float] = None
    message: str = ""

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class AlertActivity(BaseModel):
    """
    Trigger statistics derived from an alert's history.

    Attributes:
        alert_id: Alert the statistics describe
        trigger_count: Triggers inside the lookback window
        triggers_per_week: Trigger frequency normalized to one week
        avg_resolution_minutes: Mean trigger-to-resolve time, None if nothing resolved
        observed_days: Days the frequency was averaged over
    """

    alert_id: str
    trigger_count: int = Field(ge=0)
    triggers_per_week: float = Field(ge=0.0)
    avg_resolution_minutes: Optional[float] = None
    observed_days: float = Field(gt=0.0)


class HealthScore(BaseModel):
    """
    Composite 0-100 score summarizing whether an alert is well-tuned.

    Attributes:
        alert_id: Alert the score was computed for
        score: Clamped score in [0, 100]
        level: healthy (>= 80), needs-tuning (>= 50) or noisy
        label: Display label for the level
        reasons: Deduction reasons in evaluation order, or ["well-configured"]
    """

    alert_id: str = ""
    score: int = Field(ge=0, le=100)
    level: HealthLevel
    label: str
    reasons: list[str] = Field(min_length=1)
