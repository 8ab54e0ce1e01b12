"""
Timestamp normalization.

All datetimes inside the engine are naive UTC. Timezone-aware values (for
example ISO strings ending in ``Z`` from the configuration store) are
converted on the way in so naive and aware values are never compared.
"""

from datetime import datetime, timezone
from typing import Optional


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values and None pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
