"""Board action layer: the only writer of job scheduling fields.

Every mutating action follows the same shape: validate, refuse terminal jobs,
compute the new placement, check technician conflicts, compare-and-swap the
job row, write an audit record, and drop cached board views for the touched
dates. Failures come back as ``ActionResult`` values, never raw exceptions.

Conflict check and write for one ``(technician, date)`` pair are serialized
in-process; across processes the job row's ``version`` column catches lost
updates.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zoneboard.config import get_settings
from zoneboard.db import crud
from zoneboard.models import Job
from zoneboard.schedule.assembler import assemble_board, card_sort_key
from zoneboard.schedule.board import (
    Bucket,
    Zone,
    bucket_for_times,
    calculate_new_time_window,
    next_position,
    position_gap_exhausted,
    renumber_positions,
)
from zoneboard.schedule.cache import board_cache
from zoneboard.schedule.conflicts import (
    ConflictResult,
    check_time_slot_conflicts,
    find_next_available_slot,
    validate_time_slot,
)
from zoneboard.schedule.errors import (
    ActionResult,
    ErrorKind,
    JobNotFoundError,
    SchedulingError,
    TerminalJobError,
    UnknownPlacementError,
)
from zoneboard.schedule.time import combine_date_time, get_business_hours
from zoneboard.schemas.board import ZoneBoard

logger = logging.getLogger(__name__)

_day_locks: "weakref.WeakValueDictionary[tuple[str, date], asyncio.Lock]" = weakref.WeakValueDictionary()


# ── helpers ──────────────────────────────────────────────

def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    out = {}
    for key, value in values.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (date, time)):
            value = value.isoformat()
        out[key] = value
    return out


def _technician_day_lock(technician_id: str | None, day: date | None):
    if technician_id is None or day is None:
        return contextlib.nullcontext()
    key = (technician_id, day)
    lock = _day_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _day_locks[key] = lock
    return lock


def _parse_placement(zone: Zone | str | None, bucket: Bucket | str) -> tuple[str | None, Bucket]:
    """Stored zone value (None = unassigned column) and bucket for a drop target."""
    try:
        zone_value = Zone(zone).value if zone else None
    except ValueError:
        raise UnknownPlacementError(f"Unknown zone: {zone}")
    try:
        return zone_value, Bucket(bucket)
    except ValueError:
        raise UnknownPlacementError(f"Unknown bucket: {bucket}")


async def _load_mutable(db: AsyncSession, job_id: str, verb: str) -> Job:
    job = await crud.get_job(db, job_id)
    if job is None:
        raise JobNotFoundError("Job not found")
    if job.is_terminal:
        raise TerminalJobError(f"Cannot {verb} completed or cancelled jobs")
    return job


async def _check_overlap(
    db: AsyncSession,
    technician_id: str,
    day: date,
    start: time,
    end: time,
    exclude_job_id: str | None,
) -> ConflictResult:
    existing = await crud.fetch_jobs_for_technician_and_date(
        db, technician_id, day, exclude_job_id=exclude_job_id
    )
    return check_time_slot_conflicts(
        existing,
        combine_date_time(day, start),
        combine_date_time(day, end),
        exclude_job_id=exclude_job_id,
    )


def _conflict(job_id: str | None, result: ConflictResult) -> ActionResult:
    logger.warning("Rejected scheduling change for job %s: %s", job_id, result.message)
    return ActionResult.failure(ErrorKind.CONFLICT, result.message, result.conflicts)


async def _fail(db: AsyncSession, job_id: str | None, action: str, exc: Exception) -> ActionResult:
    if isinstance(exc, SchedulingError):
        logger.warning("%s failed for job %s: %s", action, job_id, exc.message)
        return ActionResult.failure(exc.kind, exc.message)
    logger.exception("%s failed for job %s", action, job_id)
    await db.rollback()
    return ActionResult.failure(ErrorKind.WRITE_FAILED, f"Failed to {action}")


async def _neighbour(db: AsyncSession, job_id: str | None) -> Job | None:
    if not job_id:
        return None
    job = await crud.get_job(db, job_id)
    if job is None:
        raise JobNotFoundError("Neighbor job not found")
    return job


async def _renumber_bucket(db: AsyncSession, anchor: Job, exclude_job_id: str) -> dict[str, float]:
    """Respace the bucket ``anchor`` sits in, keeping the current card order."""
    bucket = bucket_for_times(anchor.scheduled_time_start, anchor.scheduled_time_end)
    siblings = [
        j for j in await crud.fetch_zone_jobs(db, anchor.scheduled_date, anchor.zone)
        if j.id != exclude_job_id
        and bucket_for_times(j.scheduled_time_start, j.scheduled_time_end) is bucket
    ]
    siblings.sort(key=card_sort_key)
    positions = dict(zip((j.id for j in siblings), renumber_positions(len(siblings))))
    await crud.set_positions(db, positions)
    logger.info(
        "Renumbered %d card(s) in zone %s / %s on %s",
        len(positions), anchor.zone, bucket.value, anchor.scheduled_date,
    )
    return positions


async def _position_between(
    db: AsyncSession, job_id: str, before_id: str | None, after_id: str | None,
) -> float:
    before = await _neighbour(db, before_id)
    after = await _neighbour(db, after_id)
    before_pos = before.position if before is not None else None
    after_pos = after.position if after is not None else None

    if position_gap_exhausted(before_pos, after_pos):
        renumbered = await _renumber_bucket(db, before, exclude_job_id=job_id)
        before_pos = renumbered.get(before.id, before_pos)
        after_pos = renumbered.get(after.id, after_pos)
    return next_position(before_pos, after_pos)


async def _append_position(
    db: AsyncSession, day: date | None, zone: str | None, bucket: Bucket, exclude_job_id: str | None,
) -> float:
    """Position after the last card currently in (day, zone, bucket)."""
    positions = [
        j.position for j in await crud.fetch_zone_jobs(db, day, zone)
        if j.id != exclude_job_id
        and j.position is not None
        and bucket_for_times(j.scheduled_time_start, j.scheduled_time_end) is bucket
    ]
    return next_position(max(positions, default=None), None)


# ── board read ───────────────────────────────────────────

async def list_zone_board(
    db: AsyncSession,
    day: date,
    zones: list[str] | None = None,
    include_terminal: bool = False,
    technician_id: str | None = None,
) -> ZoneBoard:
    """Assemble (or serve from cache) the board for ``day``.

    ``technician_id`` scopes the board to one technician's jobs. Fetch
    failures raise ``JobSourceError``; no partial board is ever built.
    """
    filters = (tuple(sorted(zones or ())), include_terminal, technician_id)
    cached = board_cache.get(day, filters)
    if cached is not None:
        return cached

    jobs = await crud.fetch_jobs_for_date(
        db, day, zones=zones, include_terminal=include_terminal, technician_id=technician_id,
    )
    board = assemble_board(jobs, day)
    board_cache.put(day, filters, board)
    return board


# ── board mutations ──────────────────────────────────────

async def move_card(
    db: AsyncSession,
    job_id: str,
    to_zone: Zone | str | None,
    to_bucket: Bucket | str,
    before_id: str | None = None,
    after_id: str | None = None,
    actor_id: str | None = None,
) -> ActionResult:
    """Move a card to another zone column and/or bucket.

    The card lands between ``before_id`` and ``after_id`` when given, else at
    the end of the target bucket. The time window follows the target bucket.
    """
    try:
        zone, to_bucket = _parse_placement(to_zone, to_bucket)
        job = await _load_mutable(db, job_id, "move")
        day, tech_id = job.scheduled_date, job.technician_id
        old_start, old_end = job.scheduled_time_start, job.scheduled_time_end
        old = {
            "action": "move_card",
            "from_zone": job.zone,
            "from_bucket": bucket_for_times(old_start, old_end),
            "from_position": job.position,
        }
        window = calculate_new_time_window(old_start, old_end, to_bucket)
        if before_id or after_id:
            position = await _position_between(db, job_id, before_id, after_id)
        else:
            position = await _append_position(db, day, zone, to_bucket, job_id)

        async with _technician_day_lock(tech_id, day):
            if tech_id and day and window.start and window.end:
                result = await _check_overlap(db, tech_id, day, window.start, window.end, job_id)
                if not result.ok:
                    return _conflict(job_id, result)

            fields: dict[str, Any] = {"zone": zone, "position": position}
            if (window.start, window.end) != (old_start, old_end):
                fields["scheduled_time_start"] = window.start
                fields["scheduled_time_end"] = window.end
            await crud.update_job_scheduling(db, job_id, job.version, **fields)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "move job card", e)

    new = {
        "to_zone": zone,
        "to_bucket": to_bucket,
        "new_position": position,
        "scheduled_time_start": window.start,
        "scheduled_time_end": window.end,
    }
    await crud.record_audit(db, job_id, "UPDATE", _jsonable(old), _jsonable(new), actor_id)
    board_cache.invalidate(day)
    return ActionResult.success(
        moved=True,
        position=position,
        scheduled_time_start=window.start,
        scheduled_time_end=window.end,
    )


async def reorder_in_bucket(
    db: AsyncSession,
    job_id: str,
    prev_id: str | None = None,
    next_id: str | None = None,
    actor_id: str | None = None,
) -> ActionResult:
    """Change only the card's position. Time and technician are untouched."""
    try:
        job = await _load_mutable(db, job_id, "reorder")
        day, old_position = job.scheduled_date, job.position
        position = await _position_between(db, job_id, prev_id, next_id)
        await crud.update_job_scheduling(db, job_id, job.version, position=position)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "reorder job", e)

    await crud.record_audit(
        db, job_id, "UPDATE",
        {"action": "reorder_in_bucket", "from_position": old_position},
        {"new_position": position},
        actor_id,
    )
    board_cache.invalidate(day)
    return ActionResult.success(reordered=True, position=position)


async def assign_tech_quick(
    db: AsyncSession,
    job_id: str,
    technician_id: str,
    actor_id: str | None = None,
) -> ActionResult:
    """Assign a technician from the board card.

    With ``quick_assign_policy = "any_job"`` any other active windowed job for
    the technician that day blocks the assignment; the default ``"overlap"``
    runs the full interval check.
    """
    policy = get_settings().scheduling.quick_assign_policy
    try:
        job = await _load_mutable(db, job_id, "assign a technician to")
        if await crud.get_technician(db, technician_id) is None:
            raise JobNotFoundError("Technician not found")
        day, start, end = job.scheduled_date, job.scheduled_time_start, job.scheduled_time_end
        previous = job.technician_id

        async with _technician_day_lock(technician_id, day):
            if day and start and end:
                if policy == "any_job":
                    others = await crud.fetch_jobs_for_technician_and_date(
                        db, technician_id, day, exclude_job_id=job_id
                    )
                    if others:
                        return _conflict(job_id, ConflictResult(
                            ok=False, conflicts=others,
                            message="Potential scheduling conflict detected",
                        ))
                else:
                    result = await _check_overlap(db, technician_id, day, start, end, job_id)
                    if not result.ok:
                        return _conflict(job_id, result)
            await crud.update_job_scheduling(db, job_id, job.version, technician_id=technician_id)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "assign technician", e)

    await crud.record_audit(
        db, job_id, "UPDATE",
        {"action": "quick_assign_technician", "previous_technician_id": previous},
        {"technician_id": technician_id},
        actor_id,
    )
    board_cache.invalidate(day)
    return ActionResult.success(assigned=True)


async def assign_job(
    db: AsyncSession,
    job_id: str,
    technician_id: str,
    scheduled_date: date | None = None,
    actor_id: str | None = None,
) -> ActionResult:
    """Assign a technician, optionally moving the job to another date."""
    try:
        job = await _load_mutable(db, job_id, "assign a technician to")
        if await crud.get_technician(db, technician_id) is None:
            raise JobNotFoundError("Technician not found")
        old_day = job.scheduled_date
        day = scheduled_date or old_day
        start, end = job.scheduled_time_start, job.scheduled_time_end
        old = {
            "action": "assign_job",
            "previous_technician_id": job.technician_id,
            "previous_scheduled_date": old_day,
            "customer_name": job.customer_name,
            "job_zone": job.zone,
        }

        async with _technician_day_lock(technician_id, day):
            if day and start and end:
                result = await _check_overlap(db, technician_id, day, start, end, job_id)
                if not result.ok:
                    return _conflict(job_id, result)

            fields: dict[str, Any] = {"technician_id": technician_id}
            if scheduled_date is not None and scheduled_date != old_day:
                fields["scheduled_date"] = scheduled_date
            await crud.update_job_scheduling(db, job_id, job.version, **fields)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "assign technician to job", e)

    new = {
        "assigned_technician_id": technician_id,
        "new_scheduled_date": day,
        "assignment_timestamp": datetime.now().isoformat(),
    }
    await crud.record_audit(db, job_id, "UPDATE", _jsonable(old), _jsonable(new), actor_id)
    board_cache.invalidate(old_day, day)
    return ActionResult.success(assigned=True, scheduled_date=day)


async def unassign_technician(
    db: AsyncSession, job_id: str, actor_id: str | None = None,
) -> ActionResult:
    try:
        job = await _load_mutable(db, job_id, "modify")
        day, previous = job.scheduled_date, job.technician_id
        await crud.update_job_scheduling(db, job_id, job.version, technician_id=None)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "unassign technician", e)

    await crud.record_audit(
        db, job_id, "UPDATE",
        {"action": "technician_unassignment", "previous_technician_id": previous},
        {"technician_id": None},
        actor_id,
    )
    board_cache.invalidate(day)
    return ActionResult.success(unassigned=True)


async def update_job_time(
    db: AsyncSession,
    job_id: str,
    start: datetime,
    end: datetime,
    actor_id: str | None = None,
) -> ActionResult:
    """Reschedule a job to an explicit ``[start, end)`` on ``start``'s date."""
    validation = validate_time_slot(start, end)
    if not validation.ok:
        return ActionResult.failure(ErrorKind.INVALID_TIME_SLOT, validation.message)

    day = start.date()
    try:
        job = await _load_mutable(db, job_id, "modify")
        old_day, tech_id = job.scheduled_date, job.technician_id
        old = {
            "action": "time_update",
            "scheduled_date": old_day,
            "scheduled_time_start": job.scheduled_time_start,
            "scheduled_time_end": job.scheduled_time_end,
        }
        async with _technician_day_lock(tech_id, day):
            if tech_id:
                result = await _check_overlap(db, tech_id, day, start.time(), end.time(), job_id)
                if not result.ok:
                    return _conflict(job_id, result)
            await crud.update_job_scheduling(
                db, job_id, job.version,
                scheduled_date=day,
                scheduled_time_start=start.time(),
                scheduled_time_end=end.time(),
            )
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, job_id, "update job time", e)

    new = {
        "scheduled_date": day,
        "scheduled_time_start": start.time(),
        "scheduled_time_end": end.time(),
    }
    await crud.record_audit(db, job_id, "UPDATE", _jsonable(old), _jsonable(new), actor_id)
    board_cache.invalidate(old_day, day)
    return ActionResult.success(updated=True)


async def quick_create_job(
    db: AsyncSession,
    customer_id: str,
    zone: Zone | str | None,
    bucket: Bucket | str,
    scheduled_date: date,
    description: str | None = None,
    actor_id: str | None = None,
) -> ActionResult:
    """Create a scheduled job directly in a board cell, at the end of its bucket."""
    try:
        zone_value, bucket = _parse_placement(zone, bucket)
        window = calculate_new_time_window(None, None, bucket)
        if await crud.get_customer(db, customer_id) is None:
            raise JobNotFoundError("Customer not found")
        position = await _append_position(db, scheduled_date, zone_value, bucket, None)
        job = await crud.create_job(
            db,
            customer_id=customer_id,
            zone=zone_value,
            status="scheduled",
            scheduled_date=scheduled_date,
            scheduled_time_start=window.start,
            scheduled_time_end=window.end,
            description=description,
            position=position,
        )
        new_id = job.id
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, None, "create job", e)

    await crud.record_audit(
        db, new_id, "INSERT", None,
        _jsonable({"action": "quick_create", "zone": zone_value, "bucket": bucket, "position": position}),
        actor_id,
    )
    board_cache.invalidate(scheduled_date)
    return ActionResult.success(created=True, job_id=new_id, position=position)


# ── read-only scheduling queries ─────────────────────────

async def check_conflicts(
    db: AsyncSession,
    technician_id: str,
    start: datetime,
    end: datetime,
    exclude_job_id: str | None = None,
) -> ActionResult:
    """Validate a proposed slot, then report overlapping jobs for the technician."""
    validation = validate_time_slot(start, end)
    if not validation.ok:
        return ActionResult.failure(ErrorKind.INVALID_TIME_SLOT, validation.message)
    try:
        result = await _check_overlap(
            db, technician_id, start.date(), start.time(), end.time(), exclude_job_id
        )
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, exclude_job_id, "check for conflicts", e)
    if not result.ok:
        return ActionResult.failure(ErrorKind.CONFLICT, result.message, result.conflicts)
    return ActionResult.success(conflicts=[])


async def find_slot(
    db: AsyncSession,
    technician_id: str,
    day: date,
    duration_minutes: int,
    preferred_start: time | None = None,
) -> ActionResult:
    """First free slot of ``duration_minutes`` for the technician on ``day``."""
    try:
        jobs = await crud.fetch_jobs_for_technician_and_date(db, technician_id, day)
    except (SchedulingError, SQLAlchemyError) as e:
        return await _fail(db, None, "find an available slot", e)

    preferred = (
        combine_date_time(day, preferred_start) if preferred_start else get_business_hours(day)[0]
    )
    slot = find_next_available_slot(jobs, preferred, duration_minutes, day)
    if slot is None:
        return ActionResult.success(slot=None)
    return ActionResult.success(slot={"start": slot[0], "end": slot[1]})
