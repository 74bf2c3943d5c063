"""Zone board API: board view and drag-and-drop mutations."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from zoneboard.api.responses import action_response
from zoneboard.db.engine import get_db
from zoneboard.dependencies import Caller, require_caller, require_role
from zoneboard.schedule import actions
from zoneboard.schedule.board import Zone
from zoneboard.schedule.errors import JobSourceError
from zoneboard.schemas import (
    AssignJobRequest,
    AssignTechQuickRequest,
    MoveCardRequest,
    QuickCreateRequest,
    ReorderRequest,
    UnassignRequest,
    ZoneBoard,
)

router = APIRouter(prefix="/api/zone-board", tags=["zone_board"])

_dispatch = require_role("dispatcher", "admin")


@router.get("", response_model=ZoneBoard)
async def get_zone_board(
    day: date = Query(alias="date"),
    zones: list[Zone] | None = Query(default=None),
    include_terminal: bool = False,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    technician_id = caller.user_id if caller.is_technician else None
    try:
        return await actions.list_zone_board(
            db,
            day,
            zones=[z.value for z in zones] if zones else None,
            include_terminal=include_terminal,
            technician_id=technician_id,
        )
    except JobSourceError:
        raise HTTPException(503, "Job data is temporarily unavailable")


@router.post("/move")
async def move_card(
    body: MoveCardRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.move_card(
        db, body.job_id, body.to_zone, body.to_bucket,
        before_id=body.before_id, after_id=body.after_id, actor_id=caller.user_id,
    )
    return action_response(result)


@router.post("/reorder")
async def reorder(
    body: ReorderRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.reorder_in_bucket(
        db, body.job_id, prev_id=body.prev_id, next_id=body.next_id, actor_id=caller.user_id,
    )
    return action_response(result)


@router.post("/assign-quick")
async def assign_quick(
    body: AssignTechQuickRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.assign_tech_quick(db, body.job_id, body.technician_id, actor_id=caller.user_id)
    return action_response(result)


@router.post("/assign")
async def assign(
    body: AssignJobRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.assign_job(
        db, body.job_id, body.technician_id,
        scheduled_date=body.scheduled_date, actor_id=caller.user_id,
    )
    return action_response(result)


@router.post("/unassign")
async def unassign(
    body: UnassignRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.unassign_technician(db, body.job_id, actor_id=caller.user_id)
    return action_response(result)


@router.post("/quick-create")
async def quick_create(
    body: QuickCreateRequest,
    caller: Caller = Depends(_dispatch),
    db: AsyncSession = Depends(get_db),
):
    result = await actions.quick_create_job(
        db,
        customer_id=body.customer_id,
        zone=body.zone,
        bucket=body.bucket,
        scheduled_date=body.scheduled_date,
        description=body.description,
        actor_id=caller.user_id,
    )
    response = action_response(result)
    if result.ok:
        response.status_code = 201
    return response
