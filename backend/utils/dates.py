"""Calendar date parsing for the HTTP boundary."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional


_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date_only(value: str, pattern: Optional[str] = None) -> date:
    """Parse a ``YYYY-MM-DD`` string into a date (a UTC-midnight calendar day).

    Raises ValueError for anything else, including impossible dates such as
    ``2024-02-30``.
    """
    if not isinstance(value, str):
        raise ValueError("date must be a YYYY-MM-DD string")
    matcher = re.compile(pattern) if pattern else _DATE_ONLY
    if matcher.fullmatch(value) is None:
        raise ValueError(f"{value!r} must follow YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{value!r} is not a valid calendar date") from exc


def coerce_date(value: str | date, pattern: Optional[str] = None) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_only(value, pattern)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
