"""Canonical day boundaries.

Every date key in the application (session dates, activity dates and the
dashboard buckets) is computed in one reference timezone.
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from habitlog.settings import get_settings


def reference_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().REFERENCE_TIMEZONE)


def now() -> datetime:
    return datetime.now(reference_tz())


def today() -> date:
    return now().date()


def to_reference_date(moment: datetime) -> date:
    """Calendar day of an aware datetime in the reference timezone."""
    if moment.tzinfo is None:
        raise ValueError("naive datetimes have no canonical day")
    return moment.astimezone(reference_tz()).date()
