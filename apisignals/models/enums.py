"""
Enumeration types for the signal evaluators.

All enums inherit from str to ensure JSON serialization compatibility with
the presentation layer that consumes evaluator output.
"""

from datetime import timedelta
from enum import Enum


class Granularity(str, Enum):
    """
    Width of one interval in a metric window.

    The source auto-selects granularity from the window length; see
    ``apisignals.engine.window.select_granularity``.
    """

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# Nominal widths; month intervals are checked as calendar months instead.
GRANULARITY_WIDTHS = {
    Granularity.HOUR: timedelta(hours=1),
    Granularity.DAY: timedelta(days=1),
    Granularity.WEEK: timedelta(days=7),
}


class EvaluationPeriod(str, Enum):
    """SLA evaluation period and its fixed length in days."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @property
    def days(self) -> int:
        return {"weekly": 7, "monthly": 30, "quarterly": 90}[self.value]


class ResponseTimePercentile(str, Enum):
    """Latency percentile an SLA response-time target applies to."""

    P50 = "p50"
    P95 = "p95"
    P99 = "p99"


class RootCause(str, Enum):
    """
    Classified dominant reason a downtime incident occurred.

    Also used as the per-interval downtime reason in SLA timelines.
    """

    HIGH_ERROR_RATE = "high_error_rate"
    NO_TRAFFIC = "no_traffic"
    HIGH_RESPONSE_TIME = "high_response_time"
    UNKNOWN = "unknown"

    @property
    def display(self) -> str:
        return {
            "high_error_rate": "High Error Rate",
            "no_traffic": "No Traffic",
            "high_response_time": "High Response Time",
            "unknown": "Unknown",
        }[self.value]


class BudgetStatus(str, Enum):
    """Error budget consumption tier."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    """Current state of a threshold alert."""

    ACTIVE = "active"
    TRIGGERED = "triggered"
    RESOLVED = "resolved"


class AlertEventType(str, Enum):
    """Event kinds recorded in an alert's history."""

    TRIGGERED = "triggered"
    RESOLVED = "resolved"
    ACKNOWLEDGED = "acknowledged"
    CREATED = "created"
    UPDATED = "updated"
    DISABLED = "disabled"
    ENABLED = "enabled"


class HealthLevel(str, Enum):
    """
    Alert health tier derived from the 0-100 health score.

    healthy >= 80, needs-tuning >= 50, noisy below that.
    """

    HEALTHY = "healthy"
    NEEDS_TUNING = "needs-tuning"
    NOISY = "noisy"


class ComparisonTrend(str, Enum):
    """Direction-aware interpretation of a period-over-period change."""

    IMPROVED = "improved"
    DEGRADED = "degraded"
    NEUTRAL = "neutral"
