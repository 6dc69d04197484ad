"""Local calendar day keys.

Every day boundary in the application goes through ``local_date_key`` so that
a meal logged shortly after midnight stays on the day the user saw on their
clock instead of shifting to the neighbouring UTC day.
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def local_date_key(timestamp: datetime) -> str:
    """Return YYYY-MM-DD from the timestamp's own wall-clock fields."""
    return f"{timestamp.year:04d}-{timestamp.month:02d}-{timestamp.day:02d}"


def to_local(timestamp: datetime, reference: datetime) -> datetime:
    """Express an aware timestamp in the zone of ``reference``.

    Naive timestamps are already wall-clock readings and are returned as is.
    """
    if timestamp.tzinfo is None or reference.tzinfo is None:
        return timestamp
    return timestamp.astimezone(reference.tzinfo)


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD day key, raising ValueError when malformed."""
    return date.fromisoformat(key)


def shift_date_key(key: str, days: int) -> str:
    """Return the key ``days`` calendar days after ``key``."""
    return (parse_date_key(key) + timedelta(days=days)).isoformat()


def now_local(timezone_name: str | None = None) -> datetime:
    """Return an aware 'now' in the given zone, or the system local zone."""
    if timezone_name:
        return datetime.now(tz=ZoneInfo(timezone_name))
    return datetime.now().astimezone()


def local_clock(timezone_name: str | None = None) -> Clock:
    """Build a clock bound to a timezone."""

    def clock() -> datetime:
        return now_local(timezone_name)

    return clock


def today_key(clock: Clock) -> str:
    """Return today's local day key according to ``clock``."""
    return local_date_key(clock())
