"""Metric window source contract."""

from .base import MetricWindowSource

__all__ = ["MetricWindowSource"]
