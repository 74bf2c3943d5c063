"""Customer reference data: denormalized onto job cards."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from zoneboard.models.base import Base, ULIDMixin


class Customer(Base, ULIDMixin):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(200))
    phone_e164: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    address_line1: Mapped[str] = mapped_column(String(255), default="")
    city: Mapped[str] = mapped_column(String(100), default="")
    state: Mapped[str] = mapped_column(String(50), default="")
