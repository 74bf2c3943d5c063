from __future__ import annotations
from datetime import date, datetime, time
from typing import Any
from pydantic import BaseModel, Field, model_validator

from zoneboard.schedule.board import Bucket, Zone


class MoveCardRequest(BaseModel):
    job_id: str
    to_zone: Zone | None = None
    to_bucket: Bucket
    before_id: str | None = None
    after_id: str | None = None


class ReorderRequest(BaseModel):
    job_id: str
    prev_id: str | None = None
    next_id: str | None = None


class AssignTechQuickRequest(BaseModel):
    job_id: str
    technician_id: str


class AssignJobRequest(BaseModel):
    job_id: str
    technician_id: str
    scheduled_date: date | None = None


class UnassignRequest(BaseModel):
    job_id: str


class QuickCreateRequest(BaseModel):
    customer_id: str
    zone: Zone | None = None
    bucket: Bucket = Bucket.ANY
    scheduled_date: date
    description: str | None = Field(default=None, max_length=500)


class ConflictCheckRequest(BaseModel):
    technician_id: str
    start: datetime
    end: datetime
    exclude_job_id: str | None = None

    @model_validator(mode="after")
    def _same_day(self) -> "ConflictCheckRequest":
        if self.start.date() != self.end.date():
            raise ValueError("start and end must fall on the same day")
        return self


class NextSlotRequest(BaseModel):
    technician_id: str
    scheduled_date: date
    preferred_start: time | None = None
    duration_minutes: int = Field(default=120, gt=0)


class JobTimeUpdate(BaseModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _same_day(self) -> "JobTimeUpdate":
        if self.start.date() != self.end.date():
            raise ValueError("start and end must fall on the same day")
        return self


class ConflictingJob(BaseModel):
    id: str
    customer_name: str
    scheduled_date: date | None = None
    scheduled_time_start: time | None = None
    scheduled_time_end: time | None = None
    status: str

    model_config = {"from_attributes": True}


class ActionResponse(BaseModel):
    ok: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    message: str | None = None
    conflicts: list[ConflictingJob] = []
