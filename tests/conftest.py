"""
Pytest configuration and shared fixtures for the apisignals test suite.

Provides model factories, an in-memory metric window source, and evaluator
fixtures built on explicit Settings so tests never depend on the
environment.
"""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from apisignals.config import Settings
from apisignals.engine import (
    AlertHealthScorer,
    ComplianceEvaluator,
    ErrorBudgetTracker,
    IncidentDetector,
    PeriodComparator,
)
from apisignals.models.alerts import AlertDefinition, AlertHistoryEvent
from apisignals.models.enums import AlertEventType, Granularity
from apisignals.models.metrics import MetricInterval, MetricWindow, WindowRequest
from apisignals.models.sla import SLADefinition
from apisignals.sources.base import MetricWindowSource

BASE_TIME = datetime(2026, 10, 1, 0, 0, 0)
HOUR = timedelta(hours=1)


# ---------------------------------------------------------------------------
# Pydantic model factories
# ---------------------------------------------------------------------------


def make_interval(
    timestamp: datetime = BASE_TIME,
    request_count: int = 100,
    error_count: int = 0,
    avg_response_time_ms: float = 120.0,
    p95_response_time_ms: float = 250.0,
    **overrides,
) -> MetricInterval:
    """Factory function for creating test MetricInterval objects."""
    defaults = dict(
        timestamp=timestamp,
        request_count=request_count,
        error_count=error_count,
        avg_response_time_ms=avg_response_time_ms,
        p95_response_time_ms=p95_response_time_ms,
    )
    defaults.update(overrides)
    return MetricInterval(**defaults)


def make_intervals(
    count: int,
    start: datetime = BASE_TIME,
    width: timedelta = HOUR,
    overrides_by_index: Optional[dict[int, dict]] = None,
    **common,
) -> list[MetricInterval]:
    """Build ``count`` contiguous intervals, customizing some by index."""
    overrides_by_index = overrides_by_index or {}
    return [
        make_interval(
            timestamp=start + i * width,
            **{**common, **overrides_by_index.get(i, {})},
        )
        for i in range(count)
    ]


def make_window(
    intervals: list[MetricInterval],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    granularity: Granularity = Granularity.HOUR,
    width: timedelta = HOUR,
    project_id: str = "proj_test",
) -> MetricWindow:
    """Wrap intervals in a window whose bounds default to their coverage."""
    if start is None:
        start = intervals[0].timestamp if intervals else BASE_TIME
    if end is None:
        end = intervals[-1].timestamp + width if intervals else start
    return MetricWindow(
        project_id=project_id,
        start=start,
        end=end,
        granularity=granularity,
        intervals=intervals,
    )


def make_sla(**overrides) -> SLADefinition:
    """Factory function for creating test SLADefinition objects."""
    defaults = dict(
        id="sla_test",
        project_id="proj_test",
        name="Test API",
        uptime_target_percent=99.0,
        response_time_target_ms=None,
        response_time_percentile="p95",
        error_rate_target_percent=None,
        evaluation_period="monthly",
        downtime_threshold_error_rate=50.0,
        downtime_threshold_no_traffic_minutes=5,
    )
    defaults.update(overrides)
    return SLADefinition(**defaults)


def make_alert(**overrides) -> AlertDefinition:
    """Factory function for a well-configured, untriggered alert."""
    defaults = dict(
        id="alert_test",
        name="Test alert",
        is_enabled=True,
        evaluation_window_minutes=10,
        cooldown_minutes=20,
        notify_on_trigger=True,
        notify_on_resolve=True,
        last_triggered_at=None,
        status="active",
        created_at=BASE_TIME - timedelta(days=60),
    )
    defaults.update(overrides)
    return AlertDefinition(**defaults)


def make_history_event(
    event_type: AlertEventType, created_at: datetime, **overrides
) -> AlertHistoryEvent:
    """Factory function for alert history entries."""
    return AlertHistoryEvent(event_type=event_type, created_at=created_at, **overrides)


class InMemoryMetricSource(MetricWindowSource):
    """MetricWindowSource serving intervals from a list, filtered by range."""

    def __init__(self, intervals: list[MetricInterval]):
        self.intervals = intervals
        self.requests: list[WindowRequest] = []

    def fetch_intervals(self, request: WindowRequest) -> list[MetricInterval]:
        self.requests.append(request)
        return [
            iv for iv in self.intervals if request.start <= iv.timestamp < request.end
        ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    """Default policy settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def evaluator(settings):
    return ComplianceEvaluator(settings=settings)


@pytest.fixture
def tracker(settings):
    return ErrorBudgetTracker(settings=settings)


@pytest.fixture
def detector(settings):
    return IncidentDetector(settings=settings)


@pytest.fixture
def scorer(settings):
    return AlertHealthScorer(settings=settings)


@pytest.fixture
def comparator(settings):
    return PeriodComparator(settings=settings)


@pytest.fixture
def sample_sla():
    """SLA with uptime, latency and error-rate targets."""
    return make_sla(
        uptime_target_percent=99.0,
        response_time_target_ms=500,
        error_rate_target_percent=5.0,
    )


@pytest.fixture
def healthy_day():
    """24 hourly intervals with steady traffic and no errors."""
    return make_intervals(24)
