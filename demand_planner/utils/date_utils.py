# demand_planner/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

import pandas as pd


def convert_to_date(value: Any) -> Optional[date]:
    """Convert various date representations to a calendar date.

    Args:
        value: date, datetime, pandas Timestamp or ISO-like string

    Returns:
        Date object, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, (bool, int, float)):
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass

    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None

    if pd.isna(timestamp):
        return None

    return timestamp.date()


def weekday_index(value: date) -> int:
    """Day-of-week index with Sunday=0 through Saturday=6."""
    return value.isoweekday() % 7


def get_date_range(start_date: date, days: int) -> List[date]:
    """Get ``days`` consecutive dates following ``start_date`` (exclusive).

    Args:
        start_date: Last known date
        days: Number of dates to produce

    Returns:
        List of dates
    """
    return [start_date + timedelta(days=offset) for offset in range(1, days + 1)]


def get_season(value: date) -> str:
    """Northern-hemisphere season name for a date."""
    month = value.month
    if 3 <= month <= 5:
        return 'Spring'
    if 6 <= month <= 8:
        return 'Summer'
    if 9 <= month <= 11:
        return 'Fall'
    return 'Winter'
