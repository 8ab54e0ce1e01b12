"""
Pydantic v2 data models for the API signal evaluators.

Model Organization:
    - enums: Enumeration types for consistent classification
    - metrics: Metric intervals, windows and window requests
    - sla: SLA definitions, compliance results, error budgets, trends
    - incidents: Downtime incidents
    - alerts: Alert definitions, history events and health scores
    - comparison: Period-over-period deltas

All derived models are JSON-serializable value objects with no behavior
beyond convenience properties.

Usage:
    >>> from apisignals.models import MetricInterval, SLADefinition
    >>> sla = SLADefinition(id="sla_1", uptime_target_percent=99.9)
"""

# Enumerations
from .enums import (
    AlertEventType,
    AlertStatus,
    BudgetStatus,
    ComparisonTrend,
    EvaluationPeriod,
    Granularity,
    HealthLevel,
    ResponseTimePercentile,
    RootCause,
)

# Metric window models
from .metrics import MetricInterval, MetricWindow, WindowRequest

# SLA models
from .sla import (
    BurnRateProjection,
    ComplianceResult,
    DailyTrendEntry,
    ErrorBudget,
    ErrorRateCompliance,
    ResponseTimeCompliance,
    SLADefinition,
    SLAPortfolioSummary,
    TimelineEntry,
)

# Incident models
from .incidents import DowntimeIncident

# Alert models
from .alerts import AlertActivity, AlertDefinition, AlertHistoryEvent, HealthScore

# Comparison models
from .comparison import ComparisonResult, PeriodComparison, PeriodRange

__all__ = [
    # Enums
    "AlertEventType",
    "AlertStatus",
    "BudgetStatus",
    "ComparisonTrend",
    "EvaluationPeriod",
    "Granularity",
    "HealthLevel",
    "ResponseTimePercentile",
    "RootCause",
    # Metrics
    "MetricInterval",
    "MetricWindow",
    "WindowRequest",
    # SLA
    "BurnRateProjection",
    "ComplianceResult",
    "DailyTrendEntry",
    "ErrorBudget",
    "ErrorRateCompliance",
    "ResponseTimeCompliance",
    "SLADefinition",
    "SLAPortfolioSummary",
    "TimelineEntry",
    # Incidents
    "DowntimeIncident",
    # Alerts
    "AlertActivity",
    "AlertDefinition",
    "AlertHistoryEvent",
    "HealthScore",
    # Comparison
    "ComparisonResult",
    "PeriodComparison",
    "PeriodRange",
]
