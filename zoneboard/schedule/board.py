"""Bucket classification, bucket time windows and fractional card positions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from zoneboard.config import get_settings
from zoneboard.schedule.time import window_minutes


class Zone(str, Enum):
    NORTH = "N"
    SOUTH = "S"
    EAST = "E"
    WEST = "W"
    CENTRAL = "Central"


class Bucket(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


ZONE_ORDER: tuple[Zone, ...] = (Zone.NORTH, Zone.SOUTH, Zone.EAST, Zone.WEST, Zone.CENTRAL)
BUCKET_ORDER: tuple[Bucket, ...] = (Bucket.MORNING, Bucket.AFTERNOON, Bucket.EVENING, Bucket.ANY)

_ZONE_LABELS = {
    Zone.NORTH: "North Zone",
    Zone.SOUTH: "South Zone",
    Zone.EAST: "East Zone",
    Zone.WEST: "West Zone",
    Zone.CENTRAL: "Central Zone",
}
UNASSIGNED_LABEL = "Unassigned"

_BUCKET_LABELS = {
    Bucket.MORNING: "Morning",
    Bucket.AFTERNOON: "Afternoon",
    Bucket.EVENING: "Evening",
    Bucket.ANY: "Anytime",
}


@dataclass(frozen=True)
class TimeWindow:
    start: time | None
    end: time | None


# start hour range [lo, hi) per bucket; canonical window used when a card is dropped in
_BUCKET_HOURS = {
    Bucket.MORNING: (8, 12),
    Bucket.AFTERNOON: (12, 16),
    Bucket.EVENING: (16, 20),
}
_CANONICAL_WINDOWS = {
    Bucket.MORNING: TimeWindow(time(9), time(11)),
    Bucket.AFTERNOON: TimeWindow(time(13), time(15)),
    Bucket.EVENING: TimeWindow(time(17), time(19)),
    Bucket.ANY: TimeWindow(None, None),
}


def parse_zone(value: str | None) -> Zone | None:
    """Map a stored zone string to a Zone; None for empty or unknown values."""
    if not value:
        return None
    try:
        return Zone(value)
    except ValueError:
        return None


def zone_label(zone: Zone | None) -> str:
    if zone is None:
        return UNASSIGNED_LABEL
    return _ZONE_LABELS[zone]


def bucket_label(bucket: Bucket) -> str:
    return _BUCKET_LABELS[bucket]


def bucket_for_times(start: time | None, end: time | None) -> Bucket:
    """Classify a time window. Total: anything unscheduled or out of range is ``any``."""
    if start is None or end is None:
        return Bucket.ANY
    for bucket, (lo, hi) in _BUCKET_HOURS.items():
        if lo <= start.hour < hi:
            return bucket
    return Bucket.ANY


def default_window_for_bucket(bucket: Bucket) -> TimeWindow:
    return _CANONICAL_WINDOWS[bucket]


def calculate_new_time_window(
    current_start: time | None,
    current_end: time | None,
    target: Bucket,
) -> TimeWindow:
    """Time window for a card dropped into ``target``.

    ``any`` clears the window. A window that already classifies into the target
    bucket is kept as is. Otherwise the card starts at the bucket's canonical
    start and keeps its duration, unless that would run past midnight.
    """
    target = Bucket(target)
    if target is Bucket.ANY:
        return TimeWindow(None, None)

    if current_start is not None and current_end is not None:
        if bucket_for_times(current_start, current_end) is target:
            return TimeWindow(current_start, current_end)

    canonical = _CANONICAL_WINDOWS[target]
    minutes = window_minutes(current_start, current_end)
    if minutes is None or minutes <= 0:
        minutes = get_settings().scheduling.default_duration_minutes

    anchor = datetime.combine(date(2000, 1, 1), canonical.start)
    new_end = anchor + timedelta(minutes=minutes)
    if new_end.date() != anchor.date():
        return canonical
    return TimeWindow(canonical.start, new_end.time())


def next_position(before: float | None = None, after: float | None = None) -> float:
    """Position for a card placed between ``before`` and ``after``.

    Midpoint when both neighbours are known, one step past ``before`` when
    appending, below ``after`` when prepending, and one step when the bucket is
    empty.
    """
    step = get_settings().scheduling.position_step
    if before is None and after is None:
        return step
    if after is None:
        return before + step
    if before is None:
        return after / 2 if after > 0 else after - step
    return (before + after) / 2


def position_gap_exhausted(before: float | None, after: float | None) -> bool:
    """True when no float fits strictly between the two neighbours."""
    if before is None or after is None:
        return False
    lo, hi = min(before, after), max(before, after)
    mid = (lo + hi) / 2
    return not (lo < mid < hi)


def renumber_positions(count: int) -> list[float]:
    """Evenly spaced positions for a bucket of ``count`` cards."""
    step = get_settings().scheduling.position_step
    return [step * (i + 1) for i in range(count)]
