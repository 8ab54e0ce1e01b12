"""
Metric window models.

A metric window is the ordered, contiguous sequence of per-interval
observations a MetricWindowSource returns for one project (and optionally
one endpoint). Intervals with no traffic are present with request_count = 0
so that "no traffic" is distinguishable from "no data".
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import Granularity
from .timestamps import to_naive_utc


class MetricInterval(BaseModel):
    """
    Observations for one fixed-width interval.

    Attributes:
        timestamp: Start of the interval
        request_count: Requests served in the interval
        error_count: Failed requests in the interval
        avg_response_time_ms: Mean latency
        p50_response_time_ms: Median latency, if the source reports it
        p95_response_time_ms: 95th percentile latency
        p99_response_time_ms: 99th percentile latency, if the source reports it
        error_codes: Histogram of error status codes (code -> count)
        endpoints: Endpoint identifiers that served traffic in the interval
    """

    timestamp: datetime = Field(description="Start of the interval")
    request_count: int = Field(ge=0, description="Requests served in the interval")
    error_count: int = Field(ge=0, description="Failed requests in the interval")
    avg_response_time_ms: float = Field(default=0.0, ge=0.0, description="Mean latency")
    p50_response_time_ms: Optional[float] = Field(
        default=None, ge=0.0, description="Median latency"
    )
    p95_response_time_ms: float = Field(
        default=0.0, ge=0.0, description="95th percentile latency"
    )
    p99_response_time_ms: Optional[float] = Field(
        default=None, ge=0.0, description="99th percentile latency"
    )
    error_codes: dict[str, int] = Field(
        default_factory=dict, description="Histogram of error status codes"
    )
    endpoints: list[str] = Field(
        default_factory=list, description="Endpoints that served traffic"
    )

    @model_validator(mode="after")
    def validate_error_count(self) -> "MetricInterval":
        """Errors are a subset of requests."""
        if self.error_count > self.request_count:
            raise ValueError("error_count cannot exceed request_count")
        return self

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("error_codes")
    @classmethod
    def validate_error_codes(cls, v: dict[str, int]) -> dict[str, int]:
        """Histogram counts must be non-negative."""
        for code, count in v.items():
            if count < 0:
                raise ValueError(f"error code {code} has negative count {count}")
        return v

    @property
    def error_rate(self) -> float:
        """Error rate in percent; 0 when the interval had no traffic."""
        if self.request_count == 0:
            return 0.0
        return self.error_count / self.request_count * 100


class WindowRequest(BaseModel):
    """
    Request sent to a MetricWindowSource.

    Build with ``apisignals.engine.window.build_window_request`` to get the
    granularity auto-selected from the window length.
    """

    project_id: str = Field(description="Project the window belongs to")
    start: datetime = Field(description="Inclusive window start")
    end: datetime = Field(description="Exclusive window end")
    granularity: Granularity = Field(description="Interval width")
    endpoint_id: Optional[str] = Field(default=None, description="Optional endpoint scope")

    @field_validator("start")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("end")
    @classmethod
    def validate_range(cls, v: datetime, info) -> datetime:
        """Ensure window end is not before start."""
        v = to_naive_utc(v)
        if "start" in info.data and v < info.data["start"]:
            raise ValueError("end must not be before start")
        return v


class MetricWindow(BaseModel):
    """
    Ordered per-interval observations over [start, end).

    Attributes:
        project_id: Project the window belongs to
        start: Inclusive window start
        end: Exclusive window end
        granularity: Interval width the source used
        intervals: Observations ordered ascending by timestamp
        endpoint_id: Endpoint scope, if any
    """

    project_id: str
    start: datetime
    end: datetime
    granularity: Granularity
    intervals: list[MetricInterval] = Field(default_factory=list)
    endpoint_id: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_bounds(cls, v: datetime) -> datetime:
        return to_naive_utc(v)
