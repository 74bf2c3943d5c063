from __future__ import annotations
from datetime import date, time
from pydantic import BaseModel

from zoneboard.schedule.board import Bucket


class JobCard(BaseModel):
    id: str
    customer_id: str
    customer_name: str
    customer_city: str = ""
    technician_id: str | None = None
    technician_name: str | None = None
    zone: str | None = None
    status: str
    scheduled_date: date | None = None
    scheduled_time_start: time | None = None
    scheduled_time_end: time | None = None
    description: str | None = None
    position: float | None = None
    bucket: Bucket
    estimated_minutes: int
    time_window_label: str


class BucketView(BaseModel):
    key: Bucket
    label: str
    jobs: list[JobCard] = []
    count: int = 0
    estimated_minutes: int = 0


class TechCapacity(BaseModel):
    technician_id: str
    technician_name: str
    assigned_jobs: int = 0
    estimated_minutes: int = 0


class ZoneColumn(BaseModel):
    zone: str | None
    label: str
    buckets: list[BucketView] = []
    total_jobs: int = 0
    total_minutes: int = 0
    tech_capacity: list[TechCapacity] = []


class ZoneBoard(BaseModel):
    board_date: date
    columns: list[ZoneColumn] = []
    total_jobs: int = 0
    unassigned_jobs: int = 0

    def column(self, zone: str | None) -> ZoneColumn | None:
        for col in self.columns:
            if col.zone == zone:
                return col
        return None
