"""
Date parsing helpers for the ISO strings stored on quotations.
"""

from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def as_date(value: DateLike) -> date:
    """
    Convert a date, datetime or ISO-8601 string to a date.

    Raises:
        ValueError: if a string is not ISO-8601
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def try_as_date(value: Optional[DateLike]) -> Optional[date]:
    """Like as_date but returns None for missing or unparseable values."""
    if value is None or value == "":
        return None
    try:
        return as_date(value)
    except (ValueError, TypeError):
        return None
