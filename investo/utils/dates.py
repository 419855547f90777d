"""
Date parsing utilities for ledger and price inputs.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any


def parse_iso_date(s: str | None) -> date | None:
    """Parse ISO date string (YYYY-MM-DD) to date."""
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except (ValueError, TypeError):
        return None


def parse_date_any(value: Any) -> date | None:
    """
    Parse the date formats a ledger row commonly carries.

    Handles:
    - date / datetime objects (passthrough)
    - ISO strings, with or without a time part
    - US style MM/DD/YYYY
    - Unix timestamps (seconds or milliseconds), read as UTC
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, (int, float)):
        secs = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(secs, tz=timezone.utc).date()

    if isinstance(value, str):
        value = value.strip()
        for fmt in [
            "%Y-%m-%d",
            "%Y-%m-%dT%H:%M:%S%z",
            "%Y-%m-%dT%H:%M:%S",
            "%Y-%m-%d %H:%M:%S",
            "%m/%d/%Y",
        ]:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    return None


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def days_between(d1: date, d2: date) -> int:
    """Return number of days between two dates."""
    return (d2 - d1).days


def date_range_days(start: date, end: date) -> list[date]:
    """Every calendar day from start to end inclusive."""
    return [start + timedelta(days=i) for i in range(days_between(start, end) + 1)]
