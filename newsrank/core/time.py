"""Timestamp parsing helpers for item publication dates."""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from newsrank.core.logging import get_logger

logger = get_logger(__name__)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC timezone.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[float]:
    """
    Parse a publication timestamp into POSIX seconds.

    Accepts datetimes, epoch numbers (seconds) and date strings in any format
    dateutil understands. Returns None for missing, unparseable or
    non-finite values; never raises.
    """
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            ts = to_utc(value).timestamp()
        elif isinstance(value, (int, float)):
            ts = float(value)
        elif isinstance(value, str):
            ts = to_utc(date_parser.parse(value.strip())).timestamp()
        else:
            return None
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug(f"Could not parse {type(value).__name__} timestamp: {e}")
        return None

    if not math.isfinite(ts):
        return None
    return ts


def current_timestamp() -> float:
    """Get current time as POSIX seconds."""
    return datetime.now(timezone.utc).timestamp()


def age_hours(ts: float, now: Optional[float] = None) -> float:
    """Hours elapsed between ts and now (negative for future timestamps)."""
    now = current_timestamp() if now is None else now
    return (now - ts) / 3600


def to_iso(ts: Optional[float]) -> Optional[str]:
    """Format POSIX seconds as an ISO-8601 UTC string, or None."""
    if ts is None or not math.isfinite(ts):
        return None
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None
