"""
Datetime normalization and time-of-day utilities.

Single source of truth for turning bar timestamps into the calendar and
time-of-day values the trackers compare against. Session windows are
expressed in seconds since midnight in one reference time zone.
"""

from datetime import date, datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

SECONDS_PER_DAY = 86400


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a time zone name to a tzinfo.

    Args:
        name: IANA zone name (e.g., "UTC", "Europe/London")

    Returns:
        tzinfo instance

    Raises:
        ValueError: If the zone is unknown
    """
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"Unknown time zone: '{name}'. "
            f"Use an IANA zone name such as 'UTC' or 'America/New_York'"
        )


def to_reference_tz(ts: datetime, tz: tzinfo) -> datetime:
    """
    Express a bar timestamp in the reference time zone.

    Handles both timezone-aware and naive datetimes.
    Naive datetimes are assumed to be UTC.

    Args:
        ts: Bar timestamp
        tz: Reference time zone

    Returns:
        Timezone-aware datetime in tz
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz)


def time_of_day_seconds(ts: datetime) -> int:
    """Seconds elapsed since midnight of ts (sub-second part dropped)."""
    return ts.hour * 3600 + ts.minute * 60 + ts.second


def calendar_fields(ts: datetime, tz: tzinfo) -> tuple[date, int, int]:
    """
    Derive (date, weekday, time_of_day) for a bar timestamp.

    Weekday follows datetime.weekday(): Monday == 0.
    """
    local = to_reference_tz(ts, tz)
    return local.date(), local.weekday(), time_of_day_seconds(local)


def parse_time_of_day(value: int | str | time, param_name: str = "time") -> int:
    """
    Parse a time-of-day bound into seconds since midnight.

    Accepts:
        - int seconds (e.g., 28800)
        - "HH:MM" or "HH:MM:SS" strings ("24:00" maps to 86400)
        - datetime.time

    Range checks belong to the caller; this only parses.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid {param_name}: expected time of day, got bool")

    if isinstance(value, int):
        return value

    if isinstance(value, time):
        return value.hour * 3600 + value.minute * 60 + value.second

    if isinstance(value, str):
        text = value.strip()
        parts = text.split(":")
        if len(parts) in (2, 3) and all(p.isdigit() for p in parts):
            hours, minutes = int(parts[0]), int(parts[1])
            seconds = int(parts[2]) if len(parts) == 3 else 0
            if minutes < 60 and seconds < 60:
                return hours * 3600 + minutes * 60 + seconds
        raise ValueError(
            f"Invalid {param_name} format: '{value}'. Use HH:MM, HH:MM:SS or seconds since midnight"
        )

    raise ValueError(
        f"Invalid {param_name} type: expected int, str or time, got {type(value).__name__}"
    )


def format_time_of_day(seconds: int) -> str:
    """Format seconds since midnight as HH:MM:SS."""
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
