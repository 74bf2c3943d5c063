"""Technician model: the resource jobs are assigned to."""

from __future__ import annotations

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from zoneboard.models.base import Base, ULIDMixin


class Technician(Base, ULIDMixin):
    __tablename__ = "technicians"

    display_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), default="")
    zone: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)  # home zone
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
