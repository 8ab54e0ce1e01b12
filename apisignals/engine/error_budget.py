"""
Error Budget Tracker — Allowed Downtime, Consumption and Burn Rate.

Turns an SLA's uptime target and a ComplianceResult into an error budget:
the downtime hours the target allows over the evaluated window, how many
were used, and what share is consumed. Consumption is not clamped, so a
budget over 100% signals an active breach.

A linear burn-rate projection estimates when the remaining budget runs out.
It is for trend display only and never feeds back into the verdict.

Version: error_budget_v1
"""

import math
from datetime import datetime
from typing import Optional

import structlog

from apisignals.config import Settings, get_settings
from apisignals.errors import InvalidWindowError, MissingConfigurationError
from apisignals.models.enums import BudgetStatus
from apisignals.models.sla import (
    BurnRateProjection,
    ComplianceResult,
    ErrorBudget,
    SLADefinition,
)
from apisignals.models.timestamps import to_naive_utc, utc_now

from .validation import require_definition

logger = structlog.get_logger()

SECONDS_PER_DAY = 86400


class ErrorBudgetTracker:
    """
    Computes error budget consumption and burn-rate trends for an SLA.

    Attributes:
        settings: Policy settings (status tiers, acceleration factor, epsilon)
        logger: Structured logger

    Example:
        >>> tracker = ErrorBudgetTracker()
        >>> budget = tracker.track(sla, compliance)
        >>> projection = tracker.project(sla, budget, period_start=start)
        >>> print(budget.remaining_hours, projection.projected_exhaustion_days)
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the error budget tracker.

        Args:
            settings: Policy settings (default: cached environment settings)
        """
        self.settings = settings or get_settings()
        self.logger = structlog.get_logger()

    def track(self, sla: SLADefinition, compliance: ComplianceResult) -> ErrorBudget:
        """
        Compute the error budget implied by an SLA and its compliance result.

        total_allowed_hours = total_hours * (1 - target / 100). Used hours are
        the window's down hours, unclamped. consumed_percent is 0 when no
        downtime is allowed at all (100% target).

        Args:
            sla: SLA whose uptime target defines the budget
            compliance: Result of ComplianceEvaluator for the same SLA

        Returns:
            ErrorBudget for the evaluated window

        Raises:
            MissingConfigurationError: If the SLA or compliance result is
                absent, or they belong to different SLAs
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        if compliance is None:
            raise MissingConfigurationError("Compliance result is missing")
        if compliance.sla_id and compliance.sla_id != sla.id:
            raise MissingConfigurationError(
                f"Compliance result for SLA {compliance.sla_id} cannot be tracked against SLA {sla.id}"
            )

        total_allowed = compliance.total_hours * (1 - sla.uptime_target_percent / 100)
        used = compliance.down_hours
        remaining = max(0.0, total_allowed - used)
        consumed = used / total_allowed * 100 if total_allowed > 0 else 0.0

        budget = ErrorBudget(
            total_allowed_hours=total_allowed,
            used_hours=used,
            remaining_hours=remaining,
            consumed_percent=consumed,
            status=self._status(consumed),
        )

        self.logger.info(
            "error_budget_tracked",
            sla_id=sla.id,
            total_allowed_hours=round(total_allowed, 4),
            used_hours=used,
            consumed_percent=round(consumed, 2),
            status=budget.status.value,
        )

        return budget

    def project(
        self,
        sla: SLADefinition,
        budget: ErrorBudget,
        period_start: datetime,
        as_of: Optional[datetime] = None,
    ) -> BurnRateProjection:
        """
        Project budget exhaustion from the average burn rate so far.

        burn_rate_per_day = consumed_percent / days_elapsed, where
        days_elapsed = min(period_days, days since period_start). An
        exhaustion estimate is reported only when the burn rate exceeds
        ``burn_rate_epsilon`` and the budget is not yet used up.

        Args:
            sla: SLA supplying the evaluation period
            budget: Budget from ``track``
            period_start: Start of the current evaluation period
            as_of: Reference time (default: now, UTC)

        Returns:
            BurnRateProjection

        Raises:
            InvalidWindowError: If as_of precedes period_start
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        as_of = to_naive_utc(as_of) if as_of else utc_now()
        period_start = to_naive_utc(period_start)
        if as_of < period_start:
            raise InvalidWindowError(
                f"Reference time {as_of} precedes period start {period_start}"
            )

        period_days = sla.evaluation_period.days
        days_elapsed = min(
            float(period_days), (as_of - period_start).total_seconds() / SECONDS_PER_DAY
        )
        consumed = budget.consumed_percent

        burn_rate = consumed / days_elapsed if days_elapsed > 0 else 0.0
        percent_elapsed = days_elapsed / period_days * 100

        projected_days = None
        if burn_rate > self.settings.burn_rate_epsilon and consumed < 100:
            projected_days = math.ceil((100 - consumed) / burn_rate)

        exhausts_within_period = (
            projected_days is not None and projected_days <= period_days - days_elapsed
        )
        is_accelerating = consumed > percent_elapsed * self.settings.burn_acceleration_factor

        if is_accelerating:
            self.logger.warning(
                "error_budget_burn_accelerating",
                sla_id=sla.id,
                consumed_percent=round(consumed, 2),
                percent_of_period_elapsed=round(percent_elapsed, 2),
            )

        return BurnRateProjection(
            burn_rate_per_day=burn_rate,
            days_elapsed=days_elapsed,
            period_days=period_days,
            percent_of_period_elapsed=percent_elapsed,
            projected_exhaustion_days=projected_days,
            exhausts_within_period=exhausts_within_period,
            is_accelerating=is_accelerating,
        )

    def _status(self, consumed_percent: float) -> BudgetStatus:
        if consumed_percent < self.settings.budget_warning_percent:
            return BudgetStatus.HEALTHY
        if consumed_percent < self.settings.budget_critical_percent:
            return BudgetStatus.WARNING
        return BudgetStatus.CRITICAL
