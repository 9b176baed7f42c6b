"""Date helpers shared by the transformers and services."""
import calendar
from datetime import UTC, datetime, timedelta
from typing import Any, Optional


def now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalize a stored timestamp to an aware UTC datetime.

    Accepts datetimes (Firestore hands back ``DatetimeWithNanoseconds``),
    protobuf/Firestore timestamp objects, ISO-8601 strings and epoch seconds.
    Returns None for missing or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif hasattr(value, "to_datetime"):
        dt = value.to_datetime()
    elif hasattr(value, "ToDatetime"):
        dt = value.ToDatetime()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value, UTC)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def days_ago(days: int, reference: Optional[datetime] = None) -> datetime:
    """Point in time ``days`` days before ``reference`` (default: now)."""
    reference = reference or now()
    return reference - timedelta(days=days)


def months_ago(months: int, reference: Optional[datetime] = None) -> datetime:
    """Same day-of-month ``months`` calendar months back, clamped to month end."""
    reference = reference or now()
    total = reference.year * 12 + (reference.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return reference.replace(year=year, month=month, day=day)
