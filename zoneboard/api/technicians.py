"""Technician reference data API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zoneboard.db import crud
from zoneboard.db.engine import get_db
from zoneboard.dependencies import require_caller, require_role
from zoneboard.schemas import TechnicianCreate, TechnicianRead

router = APIRouter(prefix="/api/technicians", tags=["technicians"])


@router.get("", response_model=list[TechnicianRead])
async def list_technicians(
    include_inactive: bool = False,
    caller=Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_technicians(db, active_only=not include_inactive)


@router.post("", status_code=201, response_model=TechnicianRead)
async def create_technician(
    body: TechnicianCreate,
    caller=Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_technician(
        db,
        display_name=body.display_name.strip(),
        email=body.email.strip(),
        zone=body.zone.value if body.zone else None,
    )
