"""Double-booking detection, time slot validation and first-fit slot search.

All functions here are pure: they take a technician's job list for a single
day (already fetched by the caller) and never touch the database.

A job takes part in conflict detection only when it is non-terminal and has
both ``scheduled_time_start`` and ``scheduled_time_end`` set. Anything else is
skipped silently, never flagged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

from zoneboard.config import get_settings
from zoneboard.models.job import TERMINAL_STATUSES
from zoneboard.schedule.time import (
    combine_date_time,
    format_time,
    get_business_hours,
    get_duration_minutes,
    overlaps,
)


@dataclass
class ConflictResult:
    ok: bool
    conflicts: list[Any] = field(default_factory=list)
    message: str | None = None


@dataclass
class SlotValidation:
    ok: bool
    message: str | None = None


def _is_active_windowed(job: Any) -> bool:
    return (
        job.status not in TERMINAL_STATUSES
        and job.scheduled_date is not None
        and job.scheduled_time_start is not None
        and job.scheduled_time_end is not None
    )


def job_interval(job: Any) -> tuple[datetime, datetime]:
    return (
        combine_date_time(job.scheduled_date, job.scheduled_time_start),
        combine_date_time(job.scheduled_date, job.scheduled_time_end),
    )


def check_time_slot_conflicts(
    jobs: Iterable[Any],
    start: datetime,
    end: datetime,
    exclude_job_id: str | None = None,
) -> ConflictResult:
    """Return the active jobs whose window overlaps ``[start, end)``."""
    conflicts = []
    for job in jobs:
        if exclude_job_id is not None and job.id == exclude_job_id:
            continue
        if not _is_active_windowed(job):
            continue
        job_start, job_end = job_interval(job)
        if overlaps(start, end, job_start, job_end):
            conflicts.append(job)

    if conflicts:
        return ConflictResult(
            ok=False,
            conflicts=conflicts,
            message=f"This time slot conflicts with {len(conflicts)} existing job(s)",
        )
    return ConflictResult(ok=True)


def validate_time_slot(start: datetime, end: datetime) -> SlotValidation:
    """Check duration and business-hour rules. Independent of conflict detection."""
    cfg = get_settings().scheduling
    if start >= end:
        return SlotValidation(False, "Start time must be before end time")
    if start.date() != end.date():
        return SlotValidation(False, "Jobs must start and end on the same day")

    minutes = get_duration_minutes(start, end)
    if minutes < cfg.min_duration_minutes:
        return SlotValidation(False, f"Jobs must be at least {cfg.min_duration_minutes} minutes long")
    if minutes > cfg.max_duration_minutes:
        return SlotValidation(False, f"Jobs cannot be longer than {cfg.max_duration_minutes // 60} hours")

    if start.hour < cfg.business_start_hour or start.hour >= cfg.business_end_hour:
        return SlotValidation(
            False,
            "Jobs must start between "
            f"{format_time(time(cfg.business_start_hour))} and {format_time(time(cfg.business_end_hour))}",
        )
    return SlotValidation(True)


def find_next_available_slot(
    jobs: Iterable[Any],
    preferred_start: datetime,
    duration_minutes: int,
    day: date,
) -> tuple[datetime, datetime] | None:
    """Greedy first-fit scan from ``max(preferred_start, business start)``.

    Jobs are walked in start order; the cursor jumps to the end of each job
    that blocks it and never moves backwards. Returns None when nothing fits
    before business end.
    """
    business_start, business_end = get_business_hours(day)
    duration = timedelta(minutes=duration_minutes)
    cursor = max(preferred_start, business_start)

    intervals = sorted(job_interval(j) for j in jobs if _is_active_windowed(j))
    for job_start, job_end in intervals:
        slot_end = cursor + duration
        if slot_end <= job_start and slot_end <= business_end:
            return cursor, slot_end
        cursor = max(cursor, job_end)

    if cursor + duration <= business_end:
        return cursor, cursor + duration
    return None
