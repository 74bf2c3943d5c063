"""Job model: the schedulable unit placed on the zone board."""

from __future__ import annotations

from datetime import date, time

from sqlalchemy import String, Float, ForeignKey, Date, Time, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from zoneboard.models.base import Base, ULIDMixin, UpdatedAtMixin

TERMINAL_STATUSES = ("completed", "cancelled")
JOB_STATUSES = ("scheduled", "in_progress", "on_hold", "completed", "cancelled")


class Job(Base, ULIDMixin, UpdatedAtMixin):
    __tablename__ = "jobs"

    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"))
    technician_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("technicians.id"), nullable=True, default=None, index=True
    )
    zone: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    status: Mapped[str] = mapped_column(String(20), default="scheduled")
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True, default=None, index=True)
    scheduled_time_start: Mapped[time | None] = mapped_column(Time, nullable=True, default=None)
    scheduled_time_end: Mapped[time | None] = mapped_column(Time, nullable=True, default=None)
    position: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    service_type: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    # Optimistic concurrency token, bumped on every scheduling write.
    version: Mapped[int] = mapped_column(Integer, default=1)

    customer = relationship("Customer", lazy="joined")
    technician = relationship("Technician", lazy="joined")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def has_window(self) -> bool:
        return self.scheduled_time_start is not None and self.scheduled_time_end is not None

    @property
    def customer_name(self) -> str:
        return self.customer.name if self.customer else "Unknown Customer"

    @property
    def technician_name(self) -> str | None:
        if self.technician is None:
            return None
        return self.technician.display_name or "Unknown"
