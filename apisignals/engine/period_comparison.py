"""
Period Comparator — Current Period vs Previous Period.

Computes absolute and percent deltas between two sets of already-aggregated
metrics. Interpretation is direction-aware: for metrics where lower is
better (error rate, latency) a decrease counts as the improvement.

Percent deltas are signed (+ = increase) and computed as
(current - previous) / previous * 100, so a negative previous value flips
the sign. When the previous value is zero the percent change is undefined;
it is reported as the signed cap sentinel (+999% by default) instead of
infinity. Finite changes are reported exactly, however large.
"""

import math
from typing import Iterable, Optional

import structlog

from apisignals.config import Settings, get_settings
from apisignals.errors import IncompleteDataError, InvalidWindowError
from apisignals.models.comparison import ComparisonResult, PeriodComparison, PeriodRange
from apisignals.models.enums import ComparisonTrend
from apisignals.models.metrics import MetricWindow

from .window import summarize_intervals, validate_window

logger = structlog.get_logger()

# Metrics where a decrease is the improvement
DEFAULT_INVERTED_KEYS = frozenset(
    {"error_rate", "error_count", "avg_response_time", "p95_response_time"}
)


class PeriodComparator:
    """
    Compares metric scalars across two periods.

    Performs no aggregation of its own in ``compare``; callers supply one
    scalar per metric for each period. ``compare_windows`` is the
    convenience path that aggregates two source windows first.

    Example:
        >>> comparator = PeriodComparator()
        >>> results = comparator.compare(
        ...     {"error_rate": 2.0}, {"error_rate": 5.0}, invert_keys={"error_rate"}
        ... )
        >>> results[0].percent_delta, results[0].is_improvement
        (-60.0, True)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger = structlog.get_logger()

    def compare(
        self,
        current_metrics: dict[str, float],
        previous_metrics: dict[str, float],
        invert_keys: Iterable[str] = frozenset(),
    ) -> list[ComparisonResult]:
        """
        Compute per-metric deltas between two periods.

        Args:
            current_metrics: Metric key -> current period value
            previous_metrics: Metric key -> previous period value (same keys)
            invert_keys: Keys where lower is better

        Returns:
            One ComparisonResult per key, in current_metrics order

        Raises:
            IncompleteDataError: If the key sets differ or a value is not finite
        """
        missing = set(current_metrics) ^ set(previous_metrics)
        if missing:
            raise IncompleteDataError(
                f"Metric keys differ between periods: {sorted(missing)}"
            )

        inverted = frozenset(invert_keys)
        results = [
            self._compare_metric(
                key, current_metrics[key], previous_metrics[key], key in inverted
            )
            for key in current_metrics
        ]

        self.logger.info(
            "periods_compared",
            metric_count=len(results),
            improved=sum(1 for r in results if r.trend == ComparisonTrend.IMPROVED),
            degraded=sum(1 for r in results if r.trend == ComparisonTrend.DEGRADED),
        )

        return results

    def compare_windows(
        self,
        current: MetricWindow,
        previous: MetricWindow,
        invert_keys: Iterable[str] = DEFAULT_INVERTED_KEYS,
    ) -> PeriodComparison:
        """
        Aggregate two equal-length source windows and compare them.

        Args:
            current: Window for the current period
            previous: Window for the previous period
            invert_keys: Keys where lower is better

        Returns:
            PeriodComparison with per-metric changes and counts

        Raises:
            InvalidWindowError: If the windows differ in length or are malformed
            IncompleteDataError: If either window is not fully covered
        """
        current_span = current.end - current.start
        previous_span = previous.end - previous.start
        if current_span != previous_span:
            raise InvalidWindowError(
                f"Windows must be equal length: current {current_span}, previous {previous_span}"
            )
        validate_window(current)
        validate_window(previous)

        changes = self.compare(
            summarize_intervals(current.intervals),
            summarize_intervals(previous.intervals),
            invert_keys=invert_keys,
        )

        return PeriodComparison(
            current_period=PeriodRange(start=current.start, end=current.end),
            previous_period=PeriodRange(start=previous.start, end=previous.end),
            changes=changes,
            improved_count=sum(1 for c in changes if c.trend == ComparisonTrend.IMPROVED),
            degraded_count=sum(1 for c in changes if c.trend == ComparisonTrend.DEGRADED),
        )

    def _compare_metric(
        self, key: str, current: float, previous: float, inverted: bool
    ) -> ComparisonResult:
        if not (math.isfinite(current) and math.isfinite(previous)):
            raise IncompleteDataError(f"Metric {key} has a non-finite value")

        cap = self.settings.comparison_percent_cap
        absolute_delta = current - previous

        if previous == 0:
            if current == 0:
                percent_delta, capped = 0.0, False
            else:
                percent_delta, capped = math.copysign(cap, absolute_delta), True
        else:
            percent_delta = absolute_delta / previous * 100
            # float overflow on a near-zero previous value
            capped = not math.isfinite(percent_delta)
            if capped:
                percent_delta = math.copysign(cap, percent_delta)

        if percent_delta == 0:
            trend = ComparisonTrend.NEUTRAL
        elif (percent_delta < 0) if inverted else (percent_delta > 0):
            trend = ComparisonTrend.IMPROVED
        else:
            trend = ComparisonTrend.DEGRADED

        return ComparisonResult(
            metric_key=key,
            current_value=current,
            previous_value=previous,
            absolute_delta=absolute_delta,
            percent_delta=percent_delta,
            is_improvement=trend == ComparisonTrend.IMPROVED,
            trend=trend,
            is_capped=capped,
        )
