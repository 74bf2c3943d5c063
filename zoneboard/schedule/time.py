"""Date/time helpers for the scheduling core. Pure, no clock reads."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from zoneboard.config import get_settings


def combine_date_time(day: date, at: time | None = None) -> datetime:
    """Combine a calendar date and optional local time-of-day; start of day if absent."""
    return datetime.combine(day, at or time.min)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap. Touching boundaries do not overlap."""
    return a_start < b_end and b_start < a_end


def get_week_bounds(day: date) -> tuple[datetime, datetime]:
    """Sunday 00:00:00.000 through the following Saturday 23:59:59.999."""
    # weekday(): Monday=0 .. Sunday=6
    sunday = day - timedelta(days=(day.weekday() + 1) % 7)
    start = datetime.combine(sunday, time.min)
    end = datetime.combine(sunday + timedelta(days=6), time(23, 59, 59, 999000))
    return start, end


def get_business_hours(day: date) -> tuple[datetime, datetime]:
    cfg = get_settings().scheduling
    return (
        datetime.combine(day, time(cfg.business_start_hour)),
        datetime.combine(day, time(cfg.business_end_hour)),
    )


def get_duration_minutes(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() / 60)


def is_valid_time_range(start: datetime, end: datetime) -> bool:
    return start < end


def window_minutes(start: time | None, end: time | None) -> int | None:
    """Minutes between two times-of-day on the same day, or None if either is missing."""
    if start is None or end is None:
        return None
    anchor = date(2000, 1, 1)
    return get_duration_minutes(datetime.combine(anchor, start), datetime.combine(anchor, end))


def parse_time(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS'."""
    return time.fromisoformat(value)


def format_time(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_time_window(start: time | None, end: time | None) -> str:
    if start is None and end is None:
        return "Anytime"
    if start is None:
        return f"Until {format_time(end)}"
    if end is None:
        return f"From {format_time(start)}"
    return f"{format_time(start)} - {format_time(end)}"
