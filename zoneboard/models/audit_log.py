"""Audit trail rows written after every board mutation."""

from __future__ import annotations

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from zoneboard.models.base import Base, ULIDMixin


class AuditLog(Base, ULIDMixin):
    __tablename__ = "audit_logs"

    table_name: Mapped[str] = mapped_column(String(50))
    record_id: Mapped[str] = mapped_column(String(26), index=True)
    action: Mapped[str] = mapped_column(String(20))  # INSERT | UPDATE
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
