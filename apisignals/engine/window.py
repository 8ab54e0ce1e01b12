"""
Metric Window Utilities — validation and shared interval math.

Every evaluator consumes ordered, contiguous, equal-width intervals. This
module resolves and validates interval widths, checks that a window is fully
covered, selects the granularity a source should use for a time range, and
applies an SLA's down predicate to a run of intervals.

Validation fails fast: malformed windows raise InvalidWindowError and
windows with missing intervals raise IncompleteDataError. Nothing here
extrapolates over data that is not present.
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from apisignals.errors import IncompleteDataError, InvalidWindowError
from apisignals.models.enums import GRANULARITY_WIDTHS, Granularity, RootCause
from apisignals.models.metrics import MetricInterval, MetricWindow, WindowRequest
from apisignals.models.sla import SLADefinition
from apisignals.models.timestamps import to_naive_utc

logger = structlog.get_logger()


# Window length -> granularity, checked in order.
GRANULARITY_THRESHOLDS = [
    (timedelta(days=2), Granularity.HOUR),
    (timedelta(days=90), Granularity.DAY),
    (timedelta(days=180), Granularity.WEEK),
]

MONTH_MAX_DAYS = 31


def select_granularity(span: timedelta) -> Granularity:
    """
    Pick the interval granularity for a window length.

    <= 2 days is hourly, <= 90 days daily, <= 180 days weekly, anything
    longer monthly.

    Args:
        span: Window length

    Returns:
        Granularity the source should aggregate at

    Raises:
        InvalidWindowError: If span is negative
    """
    if span < timedelta(0):
        raise InvalidWindowError(f"Window span cannot be negative: {span}")

    for limit, granularity in GRANULARITY_THRESHOLDS:
        if span <= limit:
            return granularity
    return Granularity.MONTH


def build_window_request(
    project_id: str,
    start: datetime,
    end: datetime,
    granularity: Optional[Granularity] = None,
    endpoint_id: Optional[str] = None,
) -> WindowRequest:
    """
    Build a source request, auto-selecting granularity when none is given.

    Args:
        project_id: Project to fetch
        start: Inclusive window start
        end: Exclusive window end
        granularity: Explicit granularity (default: chosen from end - start)
        endpoint_id: Optional endpoint scope

    Returns:
        WindowRequest ready for a MetricWindowSource
    """
    start, end = to_naive_utc(start), to_naive_utc(end)
    if end < start:
        raise InvalidWindowError(f"Window end {end} is before start {start}")

    return WindowRequest(
        project_id=project_id,
        start=start,
        end=end,
        granularity=granularity or select_granularity(end - start),
        endpoint_id=endpoint_id,
    )


def resolve_interval_width(
    intervals: list[MetricInterval],
    expected_width: Optional[timedelta] = None,
) -> timedelta:
    """
    Determine the common width of a run of intervals.

    Args:
        intervals: Intervals ordered ascending by timestamp
        expected_width: Width to use when it cannot be inferred (0 or 1
            interval) and to check against otherwise

    Returns:
        The interval width (timedelta(0) for an empty list with no expected width)

    Raises:
        InvalidWindowError: If timestamps are unordered, widths differ, or a
            single interval is given without an expected width
    """
    if expected_width is not None and expected_width <= timedelta(0) and intervals:
        raise InvalidWindowError(f"Interval width must be positive, got {expected_width}")

    if not intervals:
        return expected_width or timedelta(0)

    if len(intervals) == 1:
        if expected_width is None:
            raise InvalidWindowError(
                "Cannot infer interval width from a single interval; pass interval_width"
            )
        return expected_width

    width = intervals[1].timestamp - intervals[0].timestamp
    for previous, current in zip(intervals, intervals[1:]):
        gap = current.timestamp - previous.timestamp
        if gap <= timedelta(0):
            raise InvalidWindowError(
                f"Intervals must be strictly ascending; {current.timestamp} follows {previous.timestamp}"
            )
        if gap != width:
            raise InvalidWindowError(
                f"Non-uniform interval widths: {width} and {gap} at {current.timestamp}"
            )

    if expected_width is not None and width != expected_width:
        raise InvalidWindowError(
            f"Interval width {width} does not match expected width {expected_width}"
        )

    return width


def validate_window(window: MetricWindow) -> Optional[timedelta]:
    """
    Validate that a window is well-formed and fully covered.

    Hour, day and week windows must hold intervals exactly one nominal width
    apart starting at ``window.start`` and ending at ``window.end``. Month
    windows must hold consecutive calendar months; they have no uniform
    width and None is returned for them.

    Args:
        window: Window returned by a MetricWindowSource

    Returns:
        The uniform interval width, or None for month windows

    Raises:
        InvalidWindowError: Bad bounds, unordered or mis-sized intervals
        IncompleteDataError: Intervals missing inside or at the edges of the window
    """
    if window.end < window.start:
        raise InvalidWindowError(f"Window end {window.end} is before start {window.start}")

    if window.granularity == Granularity.MONTH:
        _validate_month_window(window)
        return None

    width = GRANULARITY_WIDTHS[window.granularity]
    intervals = window.intervals

    if not intervals:
        if window.end > window.start:
            _log_rejection(window, "no_intervals")
            raise IncompleteDataError(
                f"No intervals supplied for window {window.start} - {window.end}"
            )
        return width

    for previous, current in zip(intervals, intervals[1:]):
        gap = current.timestamp - previous.timestamp
        if gap == width:
            continue
        if gap > timedelta(0) and gap % width == timedelta(0):
            _log_rejection(window, "missing_intervals")
            raise IncompleteDataError(
                f"Missing intervals between {previous.timestamp} and {current.timestamp}"
            )
        _log_rejection(window, "non_uniform_intervals")
        raise InvalidWindowError(
            f"Interval gap {gap} at {current.timestamp} does not match "
            f"{window.granularity.value} granularity"
        )

    covered_end = intervals[-1].timestamp + width
    if intervals[0].timestamp != window.start or covered_end != window.end:
        _log_rejection(window, "partial_coverage")
        raise IncompleteDataError(
            f"Intervals cover {intervals[0].timestamp} - {covered_end}, "
            f"window is {window.start} - {window.end}"
        )

    return width


def _validate_month_window(window: MetricWindow) -> None:
    """Check month intervals are consecutive calendar months covering the window."""
    intervals = window.intervals
    if not intervals:
        if window.end > window.start:
            raise IncompleteDataError(
                f"No intervals supplied for window {window.start} - {window.end}"
            )
        return

    for previous, current in zip(intervals, intervals[1:]):
        gap_days = (current.timestamp - previous.timestamp).days
        if current.timestamp != _next_month(previous.timestamp):
            if gap_days > MONTH_MAX_DAYS:
                raise IncompleteDataError(
                    f"Missing intervals between {previous.timestamp} and {current.timestamp}"
                )
            raise InvalidWindowError(
                f"Month intervals must start a calendar month apart; got {gap_days} days"
            )

    if (
        intervals[0].timestamp != window.start
        or _next_month(intervals[-1].timestamp) != window.end
    ):
        raise IncompleteDataError(
            f"Month intervals do not cover window {window.start} - {window.end}"
        )


def _next_month(moment: datetime) -> datetime:
    if moment.month == 12:
        return moment.replace(year=moment.year + 1, month=1)
    return moment.replace(month=moment.month + 1)


def _log_rejection(window: MetricWindow, reason: str) -> None:
    logger.warning(
        "window_rejected",
        project_id=window.project_id,
        reason=reason,
        granularity=window.granularity.value,
        interval_count=len(window.intervals),
    )


def classify_downtime(
    intervals: list[MetricInterval],
    sla: SLADefinition,
    width: timedelta,
) -> list[Optional[RootCause]]:
    """
    Apply an SLA's down predicate to every interval.

    An interval with traffic is down when its error rate reaches
    ``downtime_threshold_error_rate``. An interval without traffic is down
    when the contiguous run of zero-traffic intervals containing it lasts at
    least ``downtime_threshold_no_traffic_minutes``.

    Args:
        intervals: Intervals ordered ascending by timestamp
        sla: SLA supplying the thresholds
        width: Common interval width

    Returns:
        Downtime reason per interval, None for intervals that are up
    """
    reasons: list[Optional[RootCause]] = [None] * len(intervals)
    width_minutes = width.total_seconds() / 60

    i = 0
    while i < len(intervals):
        if intervals[i].request_count == 0:
            run_end = i
            while run_end < len(intervals) and intervals[run_end].request_count == 0:
                run_end += 1
            if (run_end - i) * width_minutes >= sla.downtime_threshold_no_traffic_minutes:
                for k in range(i, run_end):
                    reasons[k] = RootCause.NO_TRAFFIC
            i = run_end
            continue

        if intervals[i].error_rate >= sla.downtime_threshold_error_rate:
            reasons[i] = RootCause.HIGH_ERROR_RATE
        i += 1

    return reasons


def weighted_latency(intervals: list[MetricInterval], values: list[float]) -> float:
    """Request-weighted mean of per-interval latency values; 0 without traffic."""
    total_requests = sum(iv.request_count for iv in intervals)
    if total_requests == 0:
        return 0.0
    return sum(iv.request_count * v for iv, v in zip(intervals, values)) / total_requests


def summarize_intervals(intervals: list[MetricInterval]) -> dict[str, float]:
    """
    Aggregate a window into the scalars used for period comparison.

    Returns:
        request_count, error_count, error_rate (%), avg_response_time and
        p95_response_time (request-weighted, ms)
    """
    requests = sum(iv.request_count for iv in intervals)
    errors = sum(iv.error_count for iv in intervals)
    return {
        "request_count": float(requests),
        "error_count": float(errors),
        "error_rate": errors / requests * 100 if requests else 0.0,
        "avg_response_time": weighted_latency(
            intervals, [iv.avg_response_time_ms for iv in intervals]
        ),
        "p95_response_time": weighted_latency(
            intervals, [iv.p95_response_time_ms for iv in intervals]
        ),
    }


def previous_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Return the equal-length range immediately preceding [start, end)."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    if end < start:
        raise InvalidWindowError(f"Window end {end} is before start {start}")
    return start - (end - start), start
