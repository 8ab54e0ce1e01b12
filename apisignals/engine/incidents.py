"""
Incident Detector — Clustering Down Intervals into Downtime Incidents.

Scans a metric window in time order and groups each maximal run of "down"
intervals into one DowntimeIncident. An incident opens on the first down
interval, extends across contiguous down intervals, and closes at the first
up interval; if the window ends while still down, the incident stays open.
A single up interval between two down runs always separates them: there is
no smoothing beyond what the down predicate encodes.

Each incident gets a root cause, chosen in priority order:
1. no_traffic: every covered interval had zero requests
2. high_error_rate: aggregate error rate reached the SLA's downtime threshold
3. high_response_time: request-weighted latency exceeded the latency threshold
4. unknown: none of the above

Incident ids are derived from the SLA and start time, so re-running the
detector on the same window yields identical incidents.

Version: incident_detector_v1
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import NAMESPACE_URL, uuid5

import structlog

from apisignals.config import Settings, get_settings
from apisignals.errors import InvalidWindowError
from apisignals.models.enums import RootCause
from apisignals.models.incidents import DowntimeIncident
from apisignals.models.metrics import MetricInterval, MetricWindow
from apisignals.models.sla import SLADefinition

from .validation import require_definition
from .window import (
    classify_downtime,
    resolve_interval_width,
    validate_window,
    weighted_latency,
)

logger = structlog.get_logger()

DownPredicate = Callable[[MetricInterval], bool]


class IncidentDetector:
    """
    Detects downtime incidents in a window of metric intervals.

    By default an interval is down according to the SLA's down predicate
    (error-rate threshold or sustained zero traffic). Callers may pass their
    own per-interval predicate, for example a latency-based one.

    Attributes:
        settings: Policy settings (fallback latency threshold)
        logger: Structured logger

    Example:
        >>> detector = IncidentDetector()
        >>> incidents = detector.detect_window(sla, window)
        >>> for incident in incidents:
        ...     print(incident.started_at, incident.root_cause.value)
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the incident detector.

        Args:
            settings: Policy settings (default: cached environment settings)
        """
        self.settings = settings or get_settings()
        self.logger = structlog.get_logger()

    def detect_window(
        self,
        sla: SLADefinition,
        window: MetricWindow,
        down_predicate: Optional[DownPredicate] = None,
        latency_threshold_ms: Optional[float] = None,
    ) -> list[DowntimeIncident]:
        """
        Validate a source window, then detect incidents in it.

        Raises:
            InvalidWindowError: Malformed window or month granularity
            IncompleteDataError: Window not fully covered by intervals
        """
        width = validate_window(window)
        if width is None:
            raise InvalidWindowError(
                "Incident detection requires uniform interval widths; month windows are not supported"
            )
        return self.detect(
            sla,
            window.intervals,
            interval_width=width,
            down_predicate=down_predicate,
            latency_threshold_ms=latency_threshold_ms,
        )

    def detect(
        self,
        sla: SLADefinition,
        intervals: list[MetricInterval],
        interval_width: Optional[timedelta] = None,
        down_predicate: Optional[DownPredicate] = None,
        latency_threshold_ms: Optional[float] = None,
    ) -> list[DowntimeIncident]:
        """
        Cluster contiguous down intervals into incidents.

        Args:
            sla: SLA supplying the down predicate and error-rate threshold
            intervals: Intervals ordered ascending by timestamp
            interval_width: Width of each interval; required for a single interval
            down_predicate: Per-interval override of the SLA down predicate
            latency_threshold_ms: Threshold for high_response_time (default:
                SLA response-time target, else the configured fallback)

        Returns:
            Incidents in time order; none of them overlap

        Raises:
            MissingConfigurationError: If the SLA is absent or malformed
            InvalidWindowError: If interval widths are not uniform
        """
        sla = require_definition(sla, SLADefinition, "SLA")
        width = resolve_interval_width(intervals, interval_width)
        threshold_ms = self._latency_threshold(sla, latency_threshold_ms)

        if down_predicate is None:
            down_flags = [
                reason is not None for reason in classify_downtime(intervals, sla, width)
            ]
        else:
            down_flags = [bool(down_predicate(iv)) for iv in intervals]

        incidents = []
        run: list[MetricInterval] = []
        for interval, is_down in zip(intervals, down_flags):
            if is_down:
                run.append(interval)
                continue
            if run:
                incidents.append(
                    self._build_incident(sla, run, width, threshold_ms, ended_at=interval.timestamp)
                )
                run = []

        if run:
            incidents.append(self._build_incident(sla, run, width, threshold_ms, ended_at=None))

        self.logger.info(
            "incidents_detected",
            sla_id=sla.id,
            interval_count=len(intervals),
            incident_count=len(incidents),
            open_incidents=sum(1 for i in incidents if not i.is_resolved),
        )

        return incidents

    def _latency_threshold(
        self, sla: SLADefinition, latency_threshold_ms: Optional[float]
    ) -> float:
        if latency_threshold_ms is not None and latency_threshold_ms > 0:
            return float(latency_threshold_ms)
        if sla.has_response_time_target:
            return float(sla.response_time_target_ms)
        return self.settings.default_latency_threshold_ms

    # =========================================================================
    # Incident Construction
    # =========================================================================

    def _build_incident(
        self,
        sla: SLADefinition,
        run: list[MetricInterval],
        width: timedelta,
        threshold_ms: float,
        ended_at: Optional[datetime],
    ) -> DowntimeIncident:
        """Aggregate a run of down intervals into one incident."""
        started_at = run[0].timestamp
        requests = sum(iv.request_count for iv in run)
        errors = sum(iv.error_count for iv in run)
        error_rate = errors / requests * 100 if requests else 0.0
        response_time = weighted_latency(run, [iv.avg_response_time_ms for iv in run])

        error_codes: Counter = Counter()
        endpoints: set[str] = set()
        for iv in run:
            error_codes.update(iv.error_codes)
            endpoints.update(iv.endpoints)

        return DowntimeIncident(
            id=incident_id(sla.id, started_at),
            sla_id=sla.id,
            started_at=started_at,
            ended_at=ended_at,
            duration_seconds=len(run) * width.total_seconds(),
            root_cause=self._classify_root_cause(
                sla, run, error_rate, response_time, threshold_ms
            ),
            affected_endpoints=sorted(endpoints),
            error_codes=dict(error_codes),
            avg_error_rate=error_rate,
            avg_response_time=response_time,
            is_resolved=ended_at is not None,
            interval_count=len(run),
        )

    def _classify_root_cause(
        self,
        sla: SLADefinition,
        run: list[MetricInterval],
        error_rate: float,
        response_time: float,
        threshold_ms: float,
    ) -> RootCause:
        """First matching cause wins: no traffic, error rate, latency, unknown."""
        if all(iv.request_count == 0 for iv in run):
            return RootCause.NO_TRAFFIC
        if error_rate >= sla.downtime_threshold_error_rate:
            return RootCause.HIGH_ERROR_RATE
        if response_time > threshold_ms:
            return RootCause.HIGH_RESPONSE_TIME
        return RootCause.UNKNOWN


def incident_id(sla_id: str, started_at: datetime) -> str:
    """Deterministic incident identifier for an SLA and start time."""
    return str(uuid5(NAMESPACE_URL, f"apisignals/incident/{sla_id}/{started_at.isoformat()}"))
