"""Timezone utilities for epoch timestamps and UTC ISO rendering."""

import time
from datetime import datetime, timezone


def epoch_now() -> float:
    """Current wall-clock time as a UNIX timestamp."""
    return time.time()


def utcnow() -> datetime:
    """Current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def epoch_to_iso(timestamp: float) -> str:
    """
    Render a UNIX timestamp as an ISO-8601 UTC string with a ``Z`` suffix.

    Args:
        timestamp: Seconds since the epoch

    Returns:
        str: e.g. ``2026-10-19T12:00:00.000000Z``
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")
