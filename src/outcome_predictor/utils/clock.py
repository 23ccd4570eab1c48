"""Single clock for the package: naive datetimes in UTC.

Provider timestamps are normalised to naive UTC (see ``parse_timestamp``),
so every "now" compared against them must come from here rather than the
local wall clock.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
