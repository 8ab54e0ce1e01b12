"""
apisignals — health and compliance signals for API observability data.

Derives SLA compliance, error budgets, downtime incidents, alert health
scores and period-over-period comparisons from per-interval request metrics.
"""

from apisignals.errors import (
    IncompleteDataError,
    InvalidWindowError,
    MissingConfigurationError,
    SignalsError,
)

__version__ = "0.1.0"

__all__ = [
    "IncompleteDataError",
    "InvalidWindowError",
    "MissingConfigurationError",
    "SignalsError",
    "__version__",
]
