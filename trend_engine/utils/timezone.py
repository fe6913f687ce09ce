"""
Timezone utilities for schedule dates.

All "today / yesterday / tomorrow" reasoning happens in US Central Time, the
single fixed zone for schedule keys and reconstruction reference dates.

Central Time Zones:
- CST (Central Standard Time): UTC-6, November - March
- CDT (Central Daylight Time): UTC-5, March - November
- DST transitions: Second Sunday in March → First Sunday in November
"""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

CENTRAL_STANDARD_OFFSET = timedelta(hours=-6)  # CST is UTC-6
CENTRAL_DAYLIGHT_OFFSET = timedelta(hours=-5)  # CDT is UTC-5


def _find_nth_sunday(year: int, month: int, n: int) -> datetime:
    """Find the nth Sunday of the given month."""
    first = datetime(year, month, 1)
    days_to_sunday = (6 - first.weekday()) % 7
    return first + timedelta(days=days_to_sunday + 7 * (n - 1))


def _get_dst_transitions(year: int) -> Tuple[datetime, datetime]:
    """
    Get DST transition instants for a given year.

    DST starts: Second Sunday in March at 2:00 AM local time
    DST ends: First Sunday in November at 2:00 AM local time

    Returns:
        Tuple of (dst_start, dst_end) as aware UTC datetimes
    """
    # Second Sunday in March at 2:00 AM CST = 8:00 AM UTC
    dst_start_local = _find_nth_sunday(year, 3, 2).replace(hour=2)
    dst_start_utc = (dst_start_local - CENTRAL_STANDARD_OFFSET).replace(tzinfo=timezone.utc)

    # First Sunday in November at 2:00 AM CDT = 7:00 AM UTC
    dst_end_local = _find_nth_sunday(year, 11, 1).replace(hour=2)
    dst_end_utc = (dst_end_local - CENTRAL_DAYLIGHT_OFFSET).replace(tzinfo=timezone.utc)

    return dst_start_utc, dst_end_utc


def utc_to_central(utc_datetime: Optional[datetime]) -> Optional[datetime]:
    """
    Convert UTC datetime to Central Time (CST/CDT).

    Args:
        utc_datetime: UTC datetime (naive or timezone-aware)

    Returns:
        Central Time datetime as naive datetime

    Example:
        Winter (CST):
        >>> utc_to_central(datetime(2025, 1, 28, 18, 0))
        datetime.datetime(2025, 1, 28, 12, 0)

        Summer (CDT):
        >>> utc_to_central(datetime(2025, 7, 15, 18, 0))
        datetime.datetime(2025, 7, 15, 13, 0)
    """
    if utc_datetime is None:
        return None

    if utc_datetime.tzinfo is None:
        utc_datetime = utc_datetime.replace(tzinfo=timezone.utc)
    else:
        utc_datetime = utc_datetime.astimezone(timezone.utc)

    dst_start, dst_end = _get_dst_transitions(utc_datetime.year)
    if dst_start <= utc_datetime < dst_end:
        central_datetime = utc_datetime + CENTRAL_DAYLIGHT_OFFSET
    else:
        central_datetime = utc_datetime + CENTRAL_STANDARD_OFFSET

    return central_datetime.replace(tzinfo=None)


def central_today(now: Optional[datetime] = None) -> date:
    """
    Today's date in Central Time.

    Args:
        now: Current UTC instant (defaults to the system clock)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return utc_to_central(now).date()


def schedule_dates(now: Optional[datetime] = None) -> Dict[str, date]:
    """
    Yesterday, today and tomorrow in Central Time.

    Returns:
        {"yesterday": date, "today": date, "tomorrow": date}
    """
    today = central_today(now)
    return {
        "yesterday": today - timedelta(days=1),
        "today": today,
        "tomorrow": today + timedelta(days=1),
    }


def iso_date_key(value: date) -> str:
    """ISO YYYY-MM-DD key used to address a day's schedule."""
    return value.isoformat()


def scoreboard_date_param(date_key: str) -> str:
    """
    Convert an ISO date key to the scoreboard's YYYYMMDD parameter.

    Raises:
        ValueError: if the key is not a valid ISO date
    """
    return date.fromisoformat(date_key).strftime("%Y%m%d")
