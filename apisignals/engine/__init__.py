"""
Signal Evaluation Engine.

Pure, stateless evaluators that turn metric windows and configuration into
health and compliance signals.

Components:
    ComplianceEvaluator: SLA uptime, latency and error-rate compliance
    ErrorBudgetTracker: Error budget consumption and burn-rate projection
    IncidentDetector: Clusters down intervals into downtime incidents
    AlertHealthScorer: 0-100 tuning score for threshold alerts
    PeriodComparator: Direction-aware period-over-period deltas
    ComplianceCache: Optional memoization of compliance results

Example:
    >>> from apisignals.engine import ComplianceEvaluator, ErrorBudgetTracker
    >>> compliance = ComplianceEvaluator().evaluate_window(sla, window)
    >>> budget = ErrorBudgetTracker().track(sla, compliance)
"""

from .alert_health import AlertActivityAnalyzer, AlertHealthScorer
from .cache import CachedCompliance, ComplianceCache
from .compliance import ComplianceEvaluator
from .error_budget import ErrorBudgetTracker
from .incidents import IncidentDetector
from .period_comparison import PeriodComparator

__all__ = [
    "AlertActivityAnalyzer",
    "AlertHealthScorer",
    "CachedCompliance",
    "ComplianceCache",
    "ComplianceEvaluator",
    "ErrorBudgetTracker",
    "IncidentDetector",
    "PeriodComparator",
]
