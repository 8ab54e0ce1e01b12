"""
Alert Health Scorer — Tuning Quality of Threshold Alerts.

Scores a configured alert from 0 to 100. The score starts at 100 and every
applicable deduction is subtracted, each adding a human-readable reason in
evaluation order:

- Trigger frequency (one bracket only): >10/wk -30, >5/wk -15, >2/wk -5
- Alert disabled: -20
- Evaluation window under 5 minutes: -10
- Cooldown under 15 minutes: -5
- No trigger or resolve notifications: -15
- Currently triggered for over 24 hours -20, else over 4 hours -10

The clamped score maps to a tier: healthy (>= 80), needs-tuning (>= 50),
noisy otherwise.

Trigger frequency comes from the alert's recorded history
(AlertActivityAnalyzer); when no frequency is known the factor is skipped
rather than estimated.

Version: alert_health_v1
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from apisignals.config import Settings, get_settings
from apisignals.models.alerts import (
    AlertActivity,
    AlertDefinition,
    AlertHistoryEvent,
    HealthScore,
)
from apisignals.models.enums import AlertEventType, AlertStatus, HealthLevel
from apisignals.models.timestamps import to_naive_utc, utc_now

from .validation import require_definition

logger = structlog.get_logger()


# ============================================================================
# Deduction Definitions: thresholds, penalties and reasons
# ============================================================================

# (triggers per week above, penalty, reason), checked in order; first match only
FREQUENCY_BRACKETS = [
    (10.0, 30, "Very high trigger frequency"),
    (5.0, 15, "High trigger frequency"),
    (2.0, 5, "Moderate trigger frequency"),
]

DISABLED_PENALTY = (20, "Alert is disabled")
SHORT_WINDOW = {"below_minutes": 5, "penalty": 10, "reason": "Very short evaluation window"}
SHORT_COOLDOWN = {"below_minutes": 15, "penalty": 5, "reason": "Short cooldown period"}
NO_NOTIFICATIONS_PENALTY = (15, "No notifications configured")

# (hours triggered above, penalty, reason), checked in order; first match only
STUCK_TRIGGER_BRACKETS = [
    (24.0, 20, "Triggered for over 24 hours"),
    (4.0, 10, "Triggered for several hours"),
]

WELL_CONFIGURED = "well-configured"

HEALTHY_MIN_SCORE = 80
NEEDS_TUNING_MIN_SCORE = 50

LEVEL_LABELS = {
    HealthLevel.HEALTHY: "Healthy",
    HealthLevel.NEEDS_TUNING: "Needs Tuning",
    HealthLevel.NOISY: "Noisy",
}


class AlertHealthScorer:
    """
    Computes a 0-100 health score for a threshold alert.

    Attributes:
        settings: Policy settings (history lookback)
        analyzer: Derives trigger frequency from alert history
        logger: Structured logger

    Example:
        >>> scorer = AlertHealthScorer()
        >>> health = scorer.score(alert, triggers_per_week=12)
        >>> print(health.score, health.level.value)  # 70 needs-tuning
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the alert health scorer.

        Args:
            settings: Policy settings (default: cached environment settings)
        """
        self.settings = settings or get_settings()
        self.analyzer = AlertActivityAnalyzer(settings=self.settings)
        self.logger = structlog.get_logger()

    def score(
        self,
        alert: AlertDefinition,
        triggers_per_week: Optional[float] = None,
        as_of: Optional[datetime] = None,
    ) -> HealthScore:
        """
        Score an alert's configuration and behavior.

        Args:
            alert: Alert definition (model or mapping)
            triggers_per_week: Trigger frequency from history; None skips the factor
            as_of: Reference time for "triggered for N hours" (default: now, UTC)

        Returns:
            HealthScore with score, level, label and ordered reasons

        Raises:
            MissingConfigurationError: If the alert is absent or malformed
        """
        alert = require_definition(alert, AlertDefinition, "Alert")
        as_of = to_naive_utc(as_of) if as_of else utc_now()

        score = 100
        reasons: list[str] = []

        # Factor 1: trigger frequency
        if triggers_per_week is not None:
            for above, penalty, reason in FREQUENCY_BRACKETS:
                if triggers_per_week > above:
                    score -= penalty
                    reasons.append(reason)
                    break

        # Factor 2: configuration quality
        if not alert.is_enabled:
            score -= DISABLED_PENALTY[0]
            reasons.append(DISABLED_PENALTY[1])

        if alert.evaluation_window_minutes < SHORT_WINDOW["below_minutes"]:
            score -= SHORT_WINDOW["penalty"]
            reasons.append(SHORT_WINDOW["reason"])

        if alert.cooldown_minutes < SHORT_COOLDOWN["below_minutes"]:
            score -= SHORT_COOLDOWN["penalty"]
            reasons.append(SHORT_COOLDOWN["reason"])

        # Factor 3: responsiveness
        if not alert.notify_on_trigger and not alert.notify_on_resolve:
            score -= NO_NOTIFICATIONS_PENALTY[0]
            reasons.append(NO_NOTIFICATIONS_PENALTY[1])

        # Factor 4: stuck in triggered state
        if alert.status == AlertStatus.TRIGGERED and alert.last_triggered_at is not None:
            hours_triggered = (as_of - alert.last_triggered_at).total_seconds() / 3600
            for above, penalty, reason in STUCK_TRIGGER_BRACKETS:
                if hours_triggered > above:
                    score -= penalty
                    reasons.append(reason)
                    break

        score = max(0, min(100, score))
        level = self._score_to_level(score)

        health = HealthScore(
            alert_id=alert.id,
            score=score,
            level=level,
            label=LEVEL_LABELS[level],
            reasons=reasons or [WELL_CONFIGURED],
        )

        self.logger.info(
            "alert_health_scored",
            alert_id=alert.id,
            score=score,
            level=level.value,
            deductions=len(reasons),
        )

        return health

    def score_with_history(
        self,
        alert: AlertDefinition,
        history: list[AlertHistoryEvent],
        as_of: Optional[datetime] = None,
    ) -> HealthScore:
        """
        Score an alert using trigger frequency measured from its history.

        Args:
            alert: Alert definition
            history: Events from the alert-history store
            as_of: Reference time (default: now, UTC)

        Returns:
            HealthScore
        """
        alert = require_definition(alert, AlertDefinition, "Alert")
        as_of = to_naive_utc(as_of) if as_of else utc_now()
        activity = self.analyzer.analyze(alert, history, as_of=as_of)
        return self.score(alert, triggers_per_week=activity.triggers_per_week, as_of=as_of)

    @staticmethod
    def _score_to_level(score: int) -> HealthLevel:
        """Convert 0-100 score to health tier."""
        if score >= HEALTHY_MIN_SCORE:
            return HealthLevel.HEALTHY
        elif score >= NEEDS_TUNING_MIN_SCORE:
            return HealthLevel.NEEDS_TUNING
        else:
            return HealthLevel.NOISY


class AlertActivityAnalyzer:
    """
    Derives trigger statistics from an alert's recorded history.

    Frequency is the number of triggers inside the lookback window divided
    by the observed span (the lookback, or the alert's age if younger, never
    less than one day), normalized to a week.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def analyze(
        self,
        alert: AlertDefinition,
        history: list[AlertHistoryEvent],
        as_of: Optional[datetime] = None,
        lookback_days: Optional[int] = None,
    ) -> AlertActivity:
        """
        Compute trigger count, weekly frequency and mean resolution time.

        Args:
            alert: Alert the history belongs to
            history: Events in any order; events after as_of are ignored
            as_of: Reference time (default: now, UTC)
            lookback_days: Days of history to use (default: settings)

        Returns:
            AlertActivity
        """
        alert = require_definition(alert, AlertDefinition, "Alert")
        as_of = to_naive_utc(as_of) if as_of else utc_now()
        lookback_days = lookback_days or self.settings.alert_history_lookback_days
        since = max(as_of - timedelta(days=lookback_days), alert.created_at)

        events = sorted(
            (e for e in history if since <= e.created_at <= as_of),
            key=lambda e: e.created_at,
        )
        trigger_count = sum(1 for e in events if e.event_type == AlertEventType.TRIGGERED)

        age_days = (as_of - alert.created_at).total_seconds() / 86400
        observed_days = max(1.0, min(float(lookback_days), age_days))

        return AlertActivity(
            alert_id=alert.id,
            trigger_count=trigger_count,
            triggers_per_week=trigger_count / observed_days * 7,
            avg_resolution_minutes=self._mean_resolution_minutes(events),
            observed_days=observed_days,
        )

    def top_noisy(
        self,
        alerts: list[tuple[AlertDefinition, list[AlertHistoryEvent]]],
        as_of: Optional[datetime] = None,
        limit: int = 5,
    ) -> list[AlertActivity]:
        """
        Rank alerts that triggered in the lookback window by frequency.

        Args:
            alerts: (alert, history) pairs
            as_of: Reference time (default: now, UTC)
            limit: Maximum alerts returned

        Returns:
            AlertActivity list, most frequent first
        """
        as_of = to_naive_utc(as_of) if as_of else utc_now()
        activities = [
            self.analyze(alert, history, as_of=as_of) for alert, history in alerts
        ]
        triggered = [a for a in activities if a.trigger_count > 0]
        triggered.sort(key=lambda a: (-a.triggers_per_week, a.alert_id))
        return triggered[:limit]

    @staticmethod
    def _mean_resolution_minutes(events: list[AlertHistoryEvent]) -> Optional[float]:
        """Mean time from a trigger to the next resolve; None if nothing resolved."""
        durations = []
        open_since: Optional[datetime] = None
        for event in events:
            if event.event_type == AlertEventType.TRIGGERED and open_since is None:
                open_since = event.created_at
            elif event.event_type == AlertEventType.RESOLVED and open_since is not None:
                durations.append((event.created_at - open_since).total_seconds() / 60)
                open_since = None

        if not durations:
            return None
        return sum(durations) / len(durations)
