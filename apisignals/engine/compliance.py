"""
Compliance Evaluator — SLA Uptime, Latency and Error-Rate Compliance.

Evaluates an SLA definition against a window of per-interval observations.
Each interval is classified up or down with the SLA's down predicate; uptime
is the share of window hours that were up. Latency and error-rate targets are
checked against window-wide aggregates, and the SLA is met only when all
three targets are.

The evaluator is a pure function of its inputs: no I/O, no retained state,
safe to call concurrently for many SLAs.

Version: compliance_v1
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

import structlog

from apisignals.config import Settings, get_settings
from apisignals.errors import IncompleteDataError, InvalidWindowError
from apisignals.models.enums import ResponseTimePercentile
from apisignals.models.incidents import DowntimeIncident
from apisignals.models.metrics import MetricInterval, MetricWindow
from apisignals.models.timestamps import to_naive_utc, utc_now
from apisignals.models.sla import (
    ComplianceResult,
    DailyTrendEntry,
    ErrorRateCompliance,
    ResponseTimeCompliance,
    SLADefinition,
    SLAPortfolioSummary,
    TimelineEntry,
)

from .validation import require_definition
from .window import (
    classify_downtime,
    resolve_interval_width,
    validate_window,
    weighted_latency,
)

logger = structlog.get_logger()


class ComplianceEvaluator:
    """
    Computes SLA compliance for a window of metric intervals.

    For an SLA and its window, the evaluator:
    1. Resolves the common interval width (rejecting non-uniform windows)
    2. Classifies each interval up or down
    3. Derives total, up and down hours and the uptime percentage
    4. Aggregates the configured latency percentile and the error rate
    5. Combines the three checks into the overall verdict

    Attributes:
        settings: Policy settings (at-risk margin)
        logger: Structured logger

    Example:
        >>> evaluator = ComplianceEvaluator()
        >>> result = evaluator.evaluate_window(sla, window)
        >>> print(result.uptime_percent, result.is_meeting_sla)
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the compliance evaluator.

        Args:
            settings: Policy settings (default: cached environment settings)
        """
        self.settings = settings or get_settings()
        self.logger = structlog.get_logger()

    def evaluate_window(
        self,
        sla: SLADefinition,
        window: MetricWindow,
        as_of: Optional[datetime] = None,
    ) -> ComplianceResult:
        """
        Validate a source window, then evaluate it.

        Args:
            sla: SLA to evaluate
            window: Window returned by a MetricWindowSource
            as_of: Evaluation timestamp (default: now, UTC)

        Returns:
            ComplianceResult for the window

        Raises:
            InvalidWindowError: Malformed window or month granularity
            IncompleteDataError: Window not fully covered by intervals
        """
        width = validate_window(window)
        if width is None:
            raise InvalidWindowError(
                "Compliance requires uniform interval widths; month windows are not supported"
            )

        return self.evaluate(
            sla,
            window.intervals,
            interval_width=width,
            window_start=window.start,
            window_end=window.end,
            as_of=as_of,
        )

    def evaluate(
        self,
        sla: SLADefinition,
        intervals: list[MetricInterval],
        interval_width: Optional[timedelta] = None,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        as_of: Optional[datetime] = None,
    ) -> ComplianceResult:
        """
        Evaluate an SLA over ordered, equal-width intervals.

        Args:
            sla: SLA to evaluate (model or mapping)
            intervals: Intervals ordered ascending by timestamp
            interval_width: Width of each interval; required for a single interval
            window_start: Window start to stamp on the result
            window_end: Window end to stamp on the result
            as_of: Evaluation timestamp (default: now, UTC)

        Returns:
            ComplianceResult; uptime_percent is 100 for an empty window

        Raises:
            MissingConfigurationError: If the SLA is absent or malformed
            InvalidWindowError: If interval widths are not uniform
            IncompleteDataError: If a latency target needs a percentile the
                intervals do not carry
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        width = resolve_interval_width(intervals, interval_width)
        reasons = classify_downtime(intervals, sla, width)

        width_hours = width.total_seconds() / 3600
        down_count = sum(1 for reason in reasons if reason is not None)
        down_hours = down_count * width_hours
        up_hours = (len(intervals) - down_count) * width_hours
        total_hours = up_hours + down_hours

        uptime_percent = up_hours / total_hours * 100 if total_hours > 0 else 100.0
        is_meeting_uptime = uptime_percent >= sla.uptime_target_percent

        response_time = self._check_response_time(sla, intervals)
        error_rate = self._check_error_rate(sla, intervals)

        is_meeting_sla = (
            is_meeting_uptime and response_time.is_compliant and error_rate.is_compliant
        )
        is_at_risk = (
            is_meeting_sla
            and uptime_percent
            < sla.uptime_target_percent + self.settings.at_risk_margin_percent
        )

        if window_start is None and intervals:
            window_start = intervals[0].timestamp
        if window_end is None and intervals:
            window_end = intervals[-1].timestamp + width

        result = ComplianceResult(
            sla_id=sla.id,
            is_meeting_sla=is_meeting_sla,
            uptime_percent=uptime_percent,
            uptime_target=sla.uptime_target_percent,
            is_meeting_uptime=is_meeting_uptime,
            is_at_risk=is_at_risk,
            total_hours=total_hours,
            up_hours=up_hours,
            down_hours=down_hours,
            response_time=response_time,
            error_rate=error_rate,
            window_start=window_start,
            window_end=window_end,
            evaluated_at=to_naive_utc(as_of) if as_of else utc_now(),
        )

        self.logger.info(
            "compliance_evaluated",
            sla_id=sla.id,
            interval_count=len(intervals),
            uptime_percent=round(uptime_percent, 4),
            down_hours=down_hours,
            is_meeting_sla=is_meeting_sla,
            is_at_risk=is_at_risk,
        )

        return result

    # =========================================================================
    # Target Checks
    # =========================================================================

    def _check_response_time(
        self, sla: SLADefinition, intervals: list[MetricInterval]
    ) -> ResponseTimeCompliance:
        """
        Aggregate the configured percentile and compare it to the target.

        Per-interval percentiles are combined as a request-weighted mean over
        intervals with traffic. Without a target the check passes.
        """
        percentile = sla.response_time_percentile
        current_ms = self._aggregate_percentile(
            intervals, percentile, strict=sla.has_response_time_target
        )

        if not sla.has_response_time_target:
            return ResponseTimeCompliance(
                target_ms=0.0,
                percentile=percentile,
                current_ms=current_ms,
                is_compliant=True,
            )

        target_ms = float(sla.response_time_target_ms)
        return ResponseTimeCompliance(
            target_ms=target_ms,
            percentile=percentile,
            current_ms=current_ms,
            is_compliant=current_ms <= target_ms,
        )

    def _check_error_rate(
        self, sla: SLADefinition, intervals: list[MetricInterval]
    ) -> ErrorRateCompliance:
        """Compare the window-wide error rate to the target, if one is set."""
        requests = sum(iv.request_count for iv in intervals)
        errors = sum(iv.error_count for iv in intervals)
        current = errors / requests * 100 if requests else 0.0

        if not sla.has_error_rate_target:
            return ErrorRateCompliance(
                target_percent=0.0, current_percent=current, is_compliant=True
            )

        target = sla.error_rate_target_percent
        return ErrorRateCompliance(
            target_percent=target,
            current_percent=current,
            is_compliant=current <= target,
        )

    def _aggregate_percentile(
        self,
        intervals: list[MetricInterval],
        percentile: ResponseTimePercentile,
        strict: bool,
    ) -> float:
        with_traffic = [iv for iv in intervals if iv.request_count > 0]
        carried = []
        values = []
        for iv in with_traffic:
            value = _percentile_value(iv, percentile)
            if value is None:
                if strict:
                    raise IncompleteDataError(
                        f"Interval {iv.timestamp} has no {percentile.value} response time"
                    )
                continue
            carried.append(iv)
            values.append(value)
        return weighted_latency(carried, values)

    # =========================================================================
    # Timeline and Trend
    # =========================================================================

    def timeline(
        self,
        sla: SLADefinition,
        intervals: list[MetricInterval],
        interval_width: Optional[timedelta] = None,
    ) -> list[TimelineEntry]:
        """
        Up/down status of every interval, with the downtime reason.

        Args:
            sla: SLA supplying the down predicate
            intervals: Intervals ordered ascending by timestamp
            interval_width: Width of each interval; required for a single interval

        Returns:
            One TimelineEntry per interval, in order
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        width = resolve_interval_width(intervals, interval_width)
        reasons = classify_downtime(intervals, sla, width)

        return [
            TimelineEntry(
                timestamp=iv.timestamp,
                is_up=reason is None,
                request_count=iv.request_count,
                error_count=iv.error_count,
                error_rate=iv.error_rate,
                avg_response_time=iv.avg_response_time_ms,
                downtime_reason=reason,
            )
            for iv, reason in zip(intervals, reasons)
        ]

    def daily_trend(
        self,
        sla: SLADefinition,
        intervals: list[MetricInterval],
        interval_width: Optional[timedelta] = None,
    ) -> list[DailyTrendEntry]:
        """
        Uptime per calendar day (by interval start date).

        Raises:
            InvalidWindowError: If intervals are wider than one day
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        width = resolve_interval_width(intervals, interval_width)
        if width > timedelta(days=1):
            raise InvalidWindowError(
                f"Daily trend needs intervals no wider than a day, got {width}"
            )

        reasons = classify_downtime(intervals, sla, width)
        width_hours = width.total_seconds() / 3600

        up_by_day: dict = {}
        down_by_day: dict = {}
        for iv, reason in zip(intervals, reasons):
            day = iv.timestamp.date()
            up_by_day.setdefault(day, 0)
            down_by_day.setdefault(day, 0)
            if reason is None:
                up_by_day[day] += 1
            else:
                down_by_day[day] += 1

        trend = []
        for day in sorted(up_by_day):
            up_hours = up_by_day[day] * width_hours
            down_hours = down_by_day[day] * width_hours
            total_hours = up_hours + down_hours
            trend.append(
                DailyTrendEntry(
                    day=day,
                    uptime_percent=up_hours / total_hours * 100 if total_hours > 0 else 100.0,
                    total_hours=total_hours,
                    up_hours=up_hours,
                    down_hours=down_hours,
                )
            )
        return trend

    # =========================================================================
    # Portfolio Summary
    # =========================================================================

    def summarize_portfolio(
        self,
        results: list[ComplianceResult],
        incidents: Iterable[DowntimeIncident] = (),
    ) -> SLAPortfolioSummary:
        """
        Summarize compliance across the SLAs of one project.

        Args:
            results: One ComplianceResult per SLA
            incidents: Incidents across those SLAs, for the root-cause breakdown

        Returns:
            SLAPortfolioSummary with meeting/breaching/at-risk counts
        """
        incidents = list(incidents)
        total = len(results)
        meeting = sum(1 for r in results if r.is_meeting_sla)
        at_risk = sum(1 for r in results if r.is_at_risk)
        avg_uptime = sum(r.uptime_percent for r in results) / total if total else 0.0

        avg_duration_minutes = (
            sum(i.duration_seconds for i in incidents) / len(incidents) / 60
            if incidents
            else 0.0
        )

        return SLAPortfolioSummary(
            total_slas=total,
            meeting_sla=meeting,
            breaching_sla=total - meeting,
            at_risk_sla=at_risk,
            avg_uptime_percent=avg_uptime,
            total_incidents=len(incidents),
            avg_incident_duration_minutes=avg_duration_minutes,
            root_cause_breakdown=dict(Counter(i.root_cause for i in incidents)),
        )


def _percentile_value(
    interval: MetricInterval, percentile: ResponseTimePercentile
) -> Optional[float]:
    if percentile == ResponseTimePercentile.P50:
        return interval.p50_response_time_ms
    if percentile == ResponseTimePercentile.P99:
        return interval.p99_response_time_ms
    return interval.p95_response_time_ms
