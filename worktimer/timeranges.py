"""Calendar boundaries used by range filters."""

from datetime import datetime, timedelta


def start_of_day(t: datetime) -> datetime:
    """Midnight of t's calendar day, keeping t's timezone."""
    return t.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_iso_week(t: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing t, keeping t's timezone."""
    sod = start_of_day(t)
    return sod - timedelta(days=sod.weekday())