from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def today() -> date:
    """Local calendar day; the default clock for new sale drafts."""
    return date.today()


def today_iso(clock=today) -> str:
    return clock().isoformat()


def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a sale date into a calendar date, or None when it is not one.

    - None / "" -> None
    - "YYYY-MM-DD" -> that day
    - full ISO-8601 datetimes ("2024-05-01T10:00", "...Z") -> their date part
    - anything else -> None
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    try:
        return date.fromisoformat(s)
    except ValueError:
        pass

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        return None
