"""
Period comparison models.

Deltas between a current and a previous period for caller-supplied,
already-aggregated metrics.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ComparisonTrend


class ComparisonResult(BaseModel):
    """
    Change of one metric between two periods.

    percent_delta is signed (+ = increase when previous is positive).
    is_capped marks the cap sentinel reported when previous == 0 and the
    percent change is undefined.
    """

    metric_key: str
    current_value: float
    previous_value: float
    absolute_delta: float
    percent_delta: float
    is_improvement: bool
    trend: ComparisonTrend
    is_capped: bool = False


class PeriodRange(BaseModel):
    """A [start, end) time range."""

    start: datetime
    end: datetime


class PeriodComparison(BaseModel):
    """
    Comparison of two equal-length metric windows.

    Attributes:
        current_period: Range of the current window
        previous_period: Range of the previous window
        changes: Per-metric deltas, in input order
        improved_count: Metrics that improved
        degraded_count: Metrics that degraded
    """

    current_period: PeriodRange
    previous_period: PeriodRange
    changes: list[ComparisonResult] = Field(default_factory=list)
    improved_count: int = 0
    degraded_count: int = 0
