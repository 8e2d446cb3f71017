"""Date helpers. "Today" is always a calendar date; time of day is ignored."""

from datetime import date, datetime
from typing import Any, Optional


def today() -> date:
    """Local calendar date, truncated to midnight."""
    return datetime.now().date()


def parse_date(value: Any) -> Optional[date]:
    """Parse a stored date value (ISO string, date or datetime).

    Returns None for empty values. Timestamps keep only their date part.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end."""
    return (end - start).days
