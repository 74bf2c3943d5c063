"""Job source/sink, reference data and audit sink queries."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zoneboard.models import AuditLog, Customer, Job, Technician, TERMINAL_STATUSES
from zoneboard.schedule.errors import (
    JobNotFoundError,
    JobSourceError,
    JobWriteError,
    StaleJobError,
)

logger = logging.getLogger(__name__)

SCHEDULING_FIELDS = frozenset({
    "zone", "position", "scheduled_time_start", "scheduled_time_end",
    "technician_id", "scheduled_date",
})


# ── Customers ────────────────────────────────────────────

async def create_customer(db: AsyncSession, name: str, **kwargs) -> Customer:
    customer = Customer(name=name, **kwargs)
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return customer


async def get_customer(db: AsyncSession, customer_id: str) -> Customer | None:
    return await db.get(Customer, customer_id)


# ── Technicians ──────────────────────────────────────────

async def create_technician(
    db: AsyncSession, display_name: str, email: str = "", zone: str | None = None,
) -> Technician:
    tech = Technician(display_name=display_name, email=email, zone=zone)
    db.add(tech)
    await db.commit()
    await db.refresh(tech)
    return tech


async def get_technician(db: AsyncSession, tech_id: str) -> Technician | None:
    return await db.get(Technician, tech_id)


async def list_technicians(db: AsyncSession, active_only: bool = True) -> list[Technician]:
    stmt = select(Technician).order_by(Technician.display_name)
    if active_only:
        stmt = stmt.where(Technician.is_active == True)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Jobs (source) ────────────────────────────────────────

async def create_job(db: AsyncSession, customer_id: str, **kwargs) -> Job:
    job = Job(customer_id=customer_id, **kwargs)
    db.add(job)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise JobWriteError(f"Failed to create job: {e}") from e
    await db.refresh(job)
    return job


async def get_job(db: AsyncSession, job_id: str) -> Job | None:
    """Fetch a job, always reloading it from the database."""
    try:
        return await db.get(Job, job_id, populate_existing=True)
    except SQLAlchemyError as e:
        raise JobSourceError(f"Failed to load job {job_id}: {e}") from e


async def fetch_jobs_for_date(
    db: AsyncSession,
    day: date,
    zones: list[str] | None = None,
    include_terminal: bool = False,
    technician_id: str | None = None,
) -> list[Job]:
    """All jobs scheduled on ``day``, optionally filtered."""
    stmt = (
        select(Job)
        .where(Job.scheduled_date == day)
        .order_by(Job.scheduled_time_start, Job.id)
        .execution_options(populate_existing=True)
    )
    if zones:
        stmt = stmt.where(Job.zone.in_(zones))
    if not include_terminal:
        stmt = stmt.where(Job.status.not_in(TERMINAL_STATUSES))
    if technician_id is not None:
        stmt = stmt.where(Job.technician_id == technician_id)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise JobSourceError(f"Failed to query jobs for {day}: {e}") from e
    return list(result.scalars().all())


async def fetch_jobs_for_technician_and_date(
    db: AsyncSession,
    technician_id: str,
    day: date,
    exclude_job_id: str | None = None,
) -> list[Job]:
    """Active, time-windowed jobs for one technician on one day."""
    stmt = (
        select(Job)
        .where(
            Job.technician_id == technician_id,
            Job.scheduled_date == day,
            Job.scheduled_time_start.is_not(None),
            Job.scheduled_time_end.is_not(None),
            Job.status.not_in(TERMINAL_STATUSES),
        )
        .order_by(Job.scheduled_time_start)
        .execution_options(populate_existing=True)
    )
    if exclude_job_id is not None:
        stmt = stmt.where(Job.id != exclude_job_id)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise JobSourceError(f"Failed to query jobs for technician {technician_id}: {e}") from e
    return list(result.scalars().all())


async def fetch_zone_jobs(db: AsyncSession, day: date, zone: str | None) -> list[Job]:
    """Active jobs in one zone column on ``day`` (``None`` = unassigned column)."""
    zone_clause = Job.zone.is_(None) if zone is None else Job.zone == zone
    stmt = (
        select(Job)
        .where(Job.scheduled_date == day, zone_clause, Job.status.not_in(TERMINAL_STATUSES))
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise JobSourceError(f"Failed to query zone {zone} for {day}: {e}") from e
    return list(result.scalars().all())


async def fetch_jobs_in_range(
    db: AsyncSession, first_day: date, last_day: date, technician_id: str | None = None,
) -> list[Job]:
    """Active jobs scheduled between two dates, inclusive."""
    stmt = (
        select(Job)
        .where(
            Job.scheduled_date >= first_day,
            Job.scheduled_date <= last_day,
            Job.status.not_in(TERMINAL_STATUSES),
        )
        .order_by(Job.scheduled_date, Job.scheduled_time_start, Job.id)
        .execution_options(populate_existing=True)
    )
    if technician_id is not None:
        stmt = stmt.where(Job.technician_id == technician_id)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise JobSourceError(f"Failed to query jobs {first_day}..{last_day}: {e}") from e
    return list(result.scalars().all())


# ── Jobs (sink) ──────────────────────────────────────────

async def update_job_scheduling(
    db: AsyncSession, job_id: str, expected_version: int, **fields: Any,
) -> int:
    """Compare-and-swap the scheduling fields of one job. Returns the new version.

    Raises JobNotFoundError if the row is gone and StaleJobError if another
    writer bumped the version since ``expected_version`` was read.
    """
    unknown = set(fields) - SCHEDULING_FIELDS
    if unknown:
        raise ValueError(f"Not a scheduling field: {sorted(unknown)}")

    stmt = (
        update(Job)
        .where(Job.id == job_id, Job.version == expected_version)
        .values(**fields, version=Job.version + 1)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await db.execute(stmt)
        if result.rowcount == 0:
            await db.rollback()
            exists = await db.scalar(select(Job.id).where(Job.id == job_id))
            if exists is None:
                raise JobNotFoundError("Job not found")
            raise StaleJobError("Job was modified by another user, refresh and try again")
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise JobWriteError(f"Failed to update job {job_id}: {e}") from e
    return expected_version + 1


async def set_positions(db: AsyncSession, positions: dict[str, float]) -> None:
    """Rewrite positions of several jobs in one transaction. Versions are untouched."""
    try:
        for job_id, position in positions.items():
            await db.execute(
                update(Job)
                .where(Job.id == job_id)
                .values(position=position)
                .execution_options(synchronize_session=False)
            )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise JobWriteError(f"Failed to renumber positions: {e}") from e


# ── Audit (sink) ─────────────────────────────────────────

async def record_audit(
    db: AsyncSession,
    record_id: str,
    action: str,
    old_values: dict | None,
    new_values: dict | None,
    actor_id: str | None = None,
) -> bool:
    """Insert an audit row. Failures are logged and never propagate."""
    try:
        db.add(AuditLog(
            table_name="jobs", record_id=record_id, action=action,
            old_values=old_values, new_values=new_values, actor_id=actor_id,
        ))
        await db.commit()
        return True
    except SQLAlchemyError:
        logger.exception("Failed to write audit record for job %s", record_id)
        await db.rollback()
        return False


async def list_audit_logs(db: AsyncSession, record_id: str) -> list[AuditLog]:
    result = await db.execute(
        select(AuditLog).where(AuditLog.record_id == record_id).order_by(AuditLog.created_at, AuditLog.id)
    )
    return list(result.scalars().all())
