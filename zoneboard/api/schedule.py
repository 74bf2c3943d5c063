"""Scheduling API: conflict checks, slot search, time edits and the week view."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zoneboard.api.responses import action_response
from zoneboard.db import crud
from zoneboard.db.engine import get_db
from zoneboard.dependencies import Caller, require_caller, require_role
from zoneboard.schedule import actions
from zoneboard.schedule.assembler import to_card
from zoneboard.schedule.errors import JobSourceError
from zoneboard.schedule.time import get_week_bounds
from zoneboard.schemas import ConflictCheckRequest, JobTimeUpdate, NextSlotRequest

router = APIRouter(prefix="/api/schedule", tags=["schedule"])


@router.post("/conflicts")
async def check_conflicts(
    body: ConflictCheckRequest,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.check_conflicts(
        db, body.technician_id, body.start, body.end, exclude_job_id=body.exclude_job_id,
    )
    return action_response(result)


@router.post("/next-slot")
async def next_slot(
    body: NextSlotRequest,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.find_slot(
        db, body.technician_id, body.scheduled_date, body.duration_minutes,
        preferred_start=body.preferred_start,
    )
    return action_response(result)


@router.put("/jobs/{job_id}/time")
async def update_job_time(
    job_id: str,
    body: JobTimeUpdate,
    caller: Caller = Depends(require_role("dispatcher", "admin")),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.update_job_time(db, job_id, body.start, body.end, actor_id=caller.user_id)
    return action_response(result)


@router.get("/week")
async def week_view(
    day: date = Query(alias="date"),
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    week_start, week_end = get_week_bounds(day)
    technician_id = caller.user_id if caller.is_technician else None
    try:
        jobs = await crud.fetch_jobs_in_range(
            db, week_start.date(), week_end.date(), technician_id=technician_id,
        )
    except JobSourceError:
        raise HTTPException(503, "Job data is temporarily unavailable")
    return {
        "week_start": week_start.date().isoformat(),
        "week_end": week_end.date().isoformat(),
        "jobs": [to_card(j).model_dump(mode="json") for j in jobs],
    }
