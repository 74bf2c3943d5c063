from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from zoneboard.schedule.board import Zone


class TechnicianCreate(BaseModel):
    display_name: str
    email: str = ""
    zone: Zone | None = None


class TechnicianRead(BaseModel):
    id: str
    display_name: str
    email: str
    zone: str | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
