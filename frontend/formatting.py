"""
frontend/formatting.py
Date helpers for display and form inputs.

Dates arrive from the backend as "YYYY-MM-DD" (or occasionally full ISO
timestamps). Only the calendar part is used, so no timezone shift ever
moves a date by a day.
"""

from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]


def _date_part(value: DateLike) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def format_date_for_display(value: DateLike) -> str:
    """MM/DD/YYYY, or "" for empty/unparseable input."""
    d = _date_part(value)
    return d.strftime("%m/%d/%Y") if d else ""


def format_date_for_input(value: DateLike) -> str:
    """YYYY-MM-DD, or "" for empty/unparseable input."""
    d = _date_part(value)
    return d.isoformat() if d else ""


def parse_date(value: DateLike) -> Optional[date]:
    """date object for st.date_input defaults."""
    return _date_part(value)


def format_date_range(start: DateLike, end: DateLike) -> str:
    return f"{format_date_for_display(start)} - {format_date_for_display(end)}"
