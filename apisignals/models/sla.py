"""
SLA definition and compliance models.

This module defines the SLA configuration supplied by the configuration
store and the derived compliance, error budget and trend structures the
evaluators produce. Derived models are recomputed on every call and never
persisted by the engine.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import (
    BudgetStatus,
    EvaluationPeriod,
    ResponseTimePercentile,
    RootCause,
)
from .timestamps import to_naive_utc, utc_now


class SLADefinition(BaseModel):
    """
    A Service Level Agreement for a project or endpoint.

    Immutable for the duration of an evaluation call.

    Attributes:
        id: SLA identifier
        project_id: Project the SLA belongs to
        name: Display name
        uptime_target_percent: Required uptime (0-100)
        response_time_target_ms: Latency target; None or <= 0 means no target
        response_time_percentile: Percentile the latency target applies to
        error_rate_target_percent: Error rate target; None or <= 0 means no target
        evaluation_period: Period the SLA is evaluated over
        downtime_threshold_error_rate: Interval error rate (%) at which it counts as down
        downtime_threshold_no_traffic_minutes: Minutes without traffic that count as down
    """

    id: str = Field(description="SLA identifier")
    project_id: str = Field(default="", description="Project the SLA belongs to")
    name: str = Field(default="", description="Display name")
    uptime_target_percent: float = Field(ge=0.0, le=100.0, description="Required uptime")
    response_time_target_ms: Optional[int] = Field(
        default=None, description="Latency target in milliseconds"
    )
    response_time_percentile: ResponseTimePercentile = Field(
        default=ResponseTimePercentile.P95,
        description="Percentile the latency target applies to",
    )
    error_rate_target_percent: Optional[float] = Field(
        default=None, le=100.0, description="Error rate target in percent"
    )
    evaluation_period: EvaluationPeriod = Field(
        default=EvaluationPeriod.MONTHLY, description="Evaluation period"
    )
    downtime_threshold_error_rate: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Interval error rate (%) at which it counts as down",
    )
    downtime_threshold_no_traffic_minutes: int = Field(
        default=5, ge=0, description="Minutes without traffic that count as down"
    )

    @property
    def has_response_time_target(self) -> bool:
        return self.response_time_target_ms is not None and self.response_time_target_ms > 0

    @property
    def has_error_rate_target(self) -> bool:
        return (
            self.error_rate_target_percent is not None
            and self.error_rate_target_percent > 0
        )

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "id": "sla_checkout",
                "project_id": "proj_42",
                "name": "Checkout API",
                "uptime_target_percent": 99.9,
                "response_time_target_ms": 500,
                "response_time_percentile": "p95",
                "error_rate_target_percent": 1.0,
                "evaluation_period": "monthly",
                "downtime_threshold_error_rate": 50.0,
                "downtime_threshold_no_traffic_minutes": 5,
            }
        }


class ResponseTimeCompliance(BaseModel):
    """Latency compliance for the configured percentile."""

    target_ms: float
    percentile: ResponseTimePercentile
    current_ms: float
    is_compliant: bool


class ErrorRateCompliance(BaseModel):
    """Aggregate error rate compliance."""

    target_percent: float
    current_percent: float
    is_compliant: bool


class ComplianceResult(BaseModel):
    """
    SLA compliance verdict over one window.

    Invariant: up_hours + down_hours == total_hours. uptime_percent is 100
    when total_hours is 0 ("no data yet").

    Attributes:
        sla_id: SLA the result was computed for
        is_meeting_sla: Uptime, latency and error-rate targets all met
        uptime_percent: Percent of window hours that were up
        uptime_target: The SLA uptime target
        is_meeting_uptime: uptime_percent >= uptime_target
        is_at_risk: Meeting the SLA but within the at-risk margin of the target
        total_hours: Hours covered by the window
        up_hours: Hours counted as up
        down_hours: Hours counted as down
        response_time: Latency compliance
        error_rate: Error rate compliance
        window_start: First interval start, if known
        window_end: Window end, if known
        evaluated_at: When this result was computed
    """

    sla_id: str
    is_meeting_sla: bool
    uptime_percent: float
    uptime_target: float
    is_meeting_uptime: bool
    is_at_risk: bool = False
    total_hours: float = Field(ge=0.0)
    up_hours: float = Field(ge=0.0)
    down_hours: float = Field(ge=0.0)
    response_time: ResponseTimeCompliance
    error_rate: ErrorRateCompliance
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    evaluated_at: datetime = Field(default_factory=utc_now)

    @field_validator("window_start", "window_end", "evaluated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class ErrorBudget(BaseModel):
    """
    Allowed downtime implied by an uptime target, and how much is used.

    consumed_percent may exceed 100 to signal an active breach.
    """

    total_allowed_hours: float = Field(ge=0.0)
    used_hours: float = Field(ge=0.0)
    remaining_hours: float = Field(ge=0.0)
    consumed_percent: float = Field(ge=0.0)
    status: BudgetStatus = BudgetStatus.HEALTHY


class BurnRateProjection(BaseModel):
    """
    Linear projection of error budget consumption.

    For trend display only; it takes no part in the compliance verdict.
    projected_exhaustion_days is None when no projection can be made.
    """

    burn_rate_per_day: float
    days_elapsed: float
    period_days: int
    percent_of_period_elapsed: float
    projected_exhaustion_days: Optional[int] = None
    exhausts_within_period: bool = False
    is_accelerating: bool = False


class TimelineEntry(BaseModel):
    """Up/down status of a single interval."""

    timestamp: datetime
    is_up: bool
    request_count: int
    error_count: int
    error_rate: float
    avg_response_time: float
    downtime_reason: Optional[RootCause] = None


class DailyTrendEntry(BaseModel):
    """Uptime aggregated over one calendar day."""

    day: date
    uptime_percent: float
    total_hours: float
    up_hours: float
    down_hours: float


class SLAPortfolioSummary(BaseModel):
    """
    Overview across many SLAs of one project.

    Attributes:
        total_slas: Number of SLAs summarized
        meeting_sla: SLAs currently meeting every target
        breaching_sla: SLAs missing at least one target
        at_risk_sla: SLAs meeting targets but inside the at-risk margin
        avg_uptime_percent: Mean uptime across SLAs (0 when there are none)
        total_incidents: Incidents supplied for the breakdown
        avg_incident_duration_minutes: Mean incident duration
        root_cause_breakdown: Incident count per root cause
    """

    total_slas: int
    meeting_sla: int
    breaching_sla: int
    at_risk_sla: int
    avg_uptime_percent: float
    total_incidents: int
    avg_incident_duration_minutes: float
    root_cause_breakdown: dict[RootCause, int] = Field(default_factory=dict)
