"""
Downtime incident models.

An incident is a maximal contiguous run of "down" intervals in a metric
window, clustered by the IncidentDetector.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import RootCause


class DowntimeIncident(BaseModel):
    """
    A period during which an SLA-scoped service was down.

    Attributes:
        id: Deterministic identifier (stable across re-runs on the same input)
        sla_id: SLA whose down predicate produced the incident
        started_at: Start of the first down interval
        ended_at: Start of the first up interval after the incident, None while ongoing
        duration_seconds: Sum of the covered intervals' widths
        root_cause: Classified dominant reason
        affected_endpoints: Union of endpoints seen in the incident's intervals
        error_codes: Error status histogram merged across intervals
        avg_error_rate: Aggregate error rate in percent
        avg_response_time: Request-weighted mean latency in milliseconds
        is_resolved: False while the last interval of the window is still down
        interval_count: Number of intervals the incident covers
    """

    id: str = Field(description="Deterministic incident identifier")
    sla_id: str = Field(description="SLA whose down predicate produced the incident")
    started_at: datetime = Field(description="Start of the first down interval")
    ended_at: Optional[datetime] = Field(
        default=None, description="Start of the first up interval after the incident"
    )
    duration_seconds: float = Field(ge=0.0, description="Sum of covered interval widths")
    root_cause: RootCause = Field(description="Classified dominant reason")
    affected_endpoints: list[str] = Field(
        default_factory=list, description="Endpoints seen during the incident"
    )
    error_codes: dict[str, int] = Field(
        default_factory=dict, description="Merged error status histogram"
    )
    avg_error_rate: float = Field(default=0.0, ge=0.0, description="Aggregate error rate")
    avg_response_time: float = Field(
        default=0.0, ge=0.0, description="Request-weighted mean latency"
    )
    is_resolved: bool = Field(description="Whether the incident has ended")
    interval_count: int = Field(ge=1, description="Intervals covered")

    @field_validator("ended_at")
    @classmethod
    def validate_time_window(cls, v: Optional[datetime], info) -> Optional[datetime]:
        """Ensure an incident ends after it starts."""
        if v is not None and "started_at" in info.data:
            if v <= info.data["started_at"]:
                raise ValueError("ended_at must be after started_at")
        return v

    @property
    def root_cause_display(self) -> str:
        return self.root_cause.display

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "id": "5b0e7f4e-3a55-5d0b-9d43-3c2b7e1c0a11",
                "sla_id": "sla_checkout",
                "started_at": "2026-10-01T05:00:00",
                "ended_at": "2026-10-01T08:00:00",
                "duration_seconds": 10800,
                "root_cause": "no_traffic",
                "affected_endpoints": [],
                "error_codes": {},
                "avg_error_rate": 0.0,
                "avg_response_time": 0.0,
                "is_resolved": True,
                "interval_count": 3,
            }
        }
