"""
Property-based tests using Hypothesis for the apisignals evaluators.

These tests check invariants that must hold for any well-formed window:
hours add up, budgets stay consistent, incidents partition the down
intervals, scores stay inside their bounds and percent deltas are exact.
"""

import math
from datetime import timedelta

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from apisignals.config import Settings
from apisignals.engine import (
    AlertHealthScorer,
    ComplianceEvaluator,
    ErrorBudgetTracker,
    IncidentDetector,
    PeriodComparator,
)
from apisignals.models.enums import AlertStatus, ComparisonTrend, HealthLevel
from tests.conftest import BASE_TIME, HOUR, make_alert, make_interval, make_sla

ENGINE_SETTINGS = Settings(_env_file=None)

traffic = st.tuples(
    st.integers(min_value=0, max_value=1000),
    st.floats(min_value=0.0, max_value=1.0, allow_nan=False, allow_infinity=False),
)

finite = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


def _intervals(samples):
    return [
        make_interval(
            BASE_TIME + i * HOUR,
            request_count=requests,
            error_count=int(requests * ratio),
        )
        for i, (requests, ratio) in enumerate(samples)
    ]


# =============================================================================
# Compliance and Error Budget
# =============================================================================


@given(
    samples=st.lists(traffic, min_size=2, max_size=72),
    target=st.floats(min_value=0.0, max_value=100.0, allow_nan=False),
)
@settings(max_examples=100, deadline=None)
def test_prop_hours_partition_window(samples, target):
    """Up and down hours always add up to the window, and uptime is a percentage."""
    result = ComplianceEvaluator(ENGINE_SETTINGS).evaluate(
        make_sla(uptime_target_percent=target), _intervals(samples)
    )

    assert result.up_hours + result.down_hours == result.total_hours
    assert result.total_hours == len(samples)
    assert 0.0 <= result.uptime_percent <= 100.0
    assert result.is_meeting_uptime == (result.uptime_percent >= target)
    if result.is_at_risk:
        assert result.is_meeting_sla


@given(
    samples=st.lists(traffic, min_size=2, max_size=72),
    target=st.floats(min_value=0.0, max_value=100.0, allow_nan=False),
)
@settings(max_examples=100, deadline=None)
def test_prop_budget_consistency(samples, target):
    """Allowance is zero exactly at a 100% target; remaining never goes negative."""
    sla = make_sla(uptime_target_percent=target)
    compliance = ComplianceEvaluator(ENGINE_SETTINGS).evaluate(sla, _intervals(samples))

    budget = ErrorBudgetTracker(ENGINE_SETTINGS).track(sla, compliance)

    assert budget.remaining_hours >= 0.0
    assert budget.consumed_percent >= 0.0
    assert budget.used_hours == compliance.down_hours
    if target == 100.0:
        assert budget.total_allowed_hours == 0.0
        assert budget.consumed_percent == 0.0
    else:
        assert budget.total_allowed_hours > 0.0


# =============================================================================
# Incident Detection
# =============================================================================


@given(samples=st.lists(traffic, min_size=2, max_size=72))
@settings(max_examples=100, deadline=None)
def test_prop_incidents_cover_down_hours(samples):
    """Incidents are ordered, disjoint, and together span exactly the down hours."""
    sla = make_sla()
    intervals = _intervals(samples)
    compliance = ComplianceEvaluator(ENGINE_SETTINGS).evaluate(sla, intervals)

    incidents = IncidentDetector(ENGINE_SETTINGS).detect(sla, intervals)

    total_seconds = sum(i.duration_seconds for i in incidents)
    assert total_seconds == compliance.down_hours * 3600
    for earlier, later in zip(incidents, incidents[1:]):
        assert earlier.ended_at is not None
        assert earlier.ended_at < later.started_at
    for incident in incidents[:-1]:
        assert incident.is_resolved
    for incident in incidents:
        assert incident.duration_seconds == incident.interval_count * HOUR.total_seconds()


@given(samples=st.lists(traffic, min_size=2, max_size=48))
@settings(max_examples=50, deadline=None)
def test_prop_incident_detection_is_idempotent(samples):
    """Re-running detection yields identical incidents, ids included."""
    detector = IncidentDetector(ENGINE_SETTINGS)
    intervals = _intervals(samples)

    assert detector.detect(make_sla(), intervals) == detector.detect(make_sla(), intervals)


# =============================================================================
# Alert Health
# =============================================================================


@given(
    triggers_per_week=st.one_of(st.none(), st.floats(min_value=0.0, max_value=500.0, allow_nan=False)),
    window=st.integers(min_value=0, max_value=120),
    cooldown=st.integers(min_value=0, max_value=120),
    notify_on_trigger=st.booleans(),
    notify_on_resolve=st.booleans(),
    hours_triggered=st.one_of(st.none(), st.floats(min_value=0.0, max_value=24 * 30)),
)
@settings(max_examples=200, deadline=None)
def test_prop_alert_score_bounds(
    triggers_per_week, window, cooldown, notify_on_trigger, notify_on_resolve, hours_triggered
):
    """Scores stay in [0, 100], match their tier, and disabling never helps."""
    overrides = dict(
        evaluation_window_minutes=window,
        cooldown_minutes=cooldown,
        notify_on_trigger=notify_on_trigger,
        notify_on_resolve=notify_on_resolve,
    )
    if hours_triggered is not None:
        overrides.update(
            status=AlertStatus.TRIGGERED,
            last_triggered_at=BASE_TIME - timedelta(hours=hours_triggered),
        )
    scorer = AlertHealthScorer(ENGINE_SETTINGS)

    enabled = scorer.score(make_alert(**overrides), triggers_per_week, as_of=BASE_TIME)
    disabled = scorer.score(
        make_alert(is_enabled=False, **overrides), triggers_per_week, as_of=BASE_TIME
    )

    assert 0 <= enabled.score <= 100
    assert disabled.score <= enabled.score
    assert enabled.reasons
    if enabled.score >= 80:
        assert enabled.level == HealthLevel.HEALTHY
    elif enabled.score >= 50:
        assert enabled.level == HealthLevel.NEEDS_TUNING
    else:
        assert enabled.level == HealthLevel.NOISY


# =============================================================================
# Period Comparison
# =============================================================================


@given(current=finite, previous=finite, inverted=st.booleans())
@settings(max_examples=200, deadline=None)
def test_prop_comparison_exact_unless_undefined(current, previous, inverted):
    """Finite percent deltas are exact; only undefined ones report the cap."""
    comparator = PeriodComparator(ENGINE_SETTINGS)
    invert_keys = {"metric"} if inverted else set()
    cap = ENGINE_SETTINGS.comparison_percent_cap

    result = comparator.compare({"metric": current}, {"metric": previous}, invert_keys)[0]

    if previous == 0:
        if current == 0:
            assert result.percent_delta == 0
            assert result.is_capped is False
        else:
            assert result.percent_delta == math.copysign(cap, result.absolute_delta)
            assert result.is_capped is True
    elif result.is_capped:
        assert abs(result.percent_delta) == cap
    else:
        assert result.percent_delta == result.absolute_delta / previous * 100
        if previous > 0 and result.percent_delta != 0:
            assert (result.percent_delta > 0) == (result.absolute_delta > 0)
    assert result.is_improvement == (result.trend == ComparisonTrend.IMPROVED)


@given(current=finite, previous=finite)
@settings(max_examples=100, deadline=None)
def test_prop_inverting_flips_direction(current, previous):
    """Inverting a metric swaps improved and degraded, leaving neutral alone."""
    assume(current != previous)
    comparator = PeriodComparator(ENGINE_SETTINGS)

    plain = comparator.compare({"m": current}, {"m": previous})[0]
    inverted = comparator.compare({"m": current}, {"m": previous}, {"m"})[0]

    if plain.trend == ComparisonTrend.NEUTRAL:
        assert inverted.trend == ComparisonTrend.NEUTRAL
    else:
        assert plain.trend != inverted.trend
