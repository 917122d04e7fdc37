# backend/travel_crm/utils/time_utils.py

from datetime import date, datetime
from typing import Optional, Union
import pytz


LK_TZ = pytz.timezone("Asia/Colombo")

NOT_SPECIFIED = "Not specified"


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Accepts:
    - date / datetime objects
    - 2026-03-12
    - 2026-03-12T00:00:00+00:00 (timestamps coming back from the dashboard)
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_long_date(value: Union[str, date, None]) -> str:
    """2026-03-05 -> 'March 5, 2026'."""
    d = parse_date(value)
    if d is None:
        return NOT_SPECIFIED
    return f"{d:%B} {d.day}, {d.year}"


def trip_duration(
    duration: Optional[int],
    start: Union[str, date, None],
    end: Union[str, date, None],
) -> Optional[int]:
    """Stored duration wins; otherwise count both the first and the last day."""
    if duration:
        return int(duration)

    s = parse_date(start)
    e = parse_date(end)
    if s is None or e is None:
        return None
    return abs((e - s).days) + 1


def utc_now_iso() -> str:
    return datetime.now(pytz.utc).isoformat()


def current_year() -> int:
    return datetime.now(LK_TZ).year
