"""
Abstract metric window source.

The HTTP API that serves raw metric windows lives outside this package.
This module defines the contract the evaluators expect from it: ordered,
contiguous intervals for a project (optionally one endpoint) over
[start, end) at the requested granularity. Implementations only fetch;
``fetch_window`` validates what they return before any evaluator sees it.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import structlog

from apisignals.engine.window import build_window_request, validate_window
from apisignals.models.enums import Granularity
from apisignals.models.metrics import MetricInterval, MetricWindow, WindowRequest

logger = structlog.get_logger(__name__)


class MetricWindowSource(ABC):
    """
    Abstract base class for metric window providers.

    Implementations should:
    - Return intervals ordered ascending by timestamp
    - Include zero-traffic intervals explicitly (request_count = 0)
    - Raise their own I/O errors; retries are the caller's decision
    """

    @abstractmethod
    def fetch_intervals(self, request: WindowRequest) -> list[MetricInterval]:
        """
        Fetch raw intervals for a window request.

        Args:
            request: Project, range, granularity and optional endpoint

        Returns:
            Intervals covering [request.start, request.end)
        """
        pass

    def fetch_window(self, request: WindowRequest) -> MetricWindow:
        """
        Fetch and validate a window.

        Raises:
            InvalidWindowError: If the returned intervals are malformed
            IncompleteDataError: If the returned intervals do not cover the range
        """
        intervals = self.fetch_intervals(request)
        window = MetricWindow(
            project_id=request.project_id,
            start=request.start,
            end=request.end,
            granularity=request.granularity,
            intervals=intervals,
            endpoint_id=request.endpoint_id,
        )
        validate_window(window)

        logger.debug(
            "metric_window_fetched",
            project_id=request.project_id,
            granularity=request.granularity.value,
            interval_count=len(intervals),
        )
        return window

    def fetch_range(
        self,
        project_id: str,
        start: datetime,
        end: datetime,
        granularity: Optional[Granularity] = None,
        endpoint_id: Optional[str] = None,
    ) -> MetricWindow:
        """Fetch a validated window, auto-selecting granularity when none is given."""
        return self.fetch_window(
            build_window_request(project_id, start, end, granularity, endpoint_id)
        )
