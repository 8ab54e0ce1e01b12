"""
Error taxonomy for the signal evaluators.

Evaluators validate their inputs at the boundary and raise one of these
immediately. None of them retries; retrying a window fetch belongs to the
caller's I/O layer.
"""


class SignalsError(Exception):
    """Base exception for all evaluator failures."""

    pass


class InvalidWindowError(SignalsError):
    """Raised when a metric window is malformed (non-uniform widths, bad bounds)."""

    pass


class MissingConfigurationError(SignalsError):
    """Raised when an SLA or alert definition is absent or malformed."""

    pass


class IncompleteDataError(SignalsError):
    """Raised when supplied intervals do not fully cover the requested window."""

    pass
