"""SQLAlchemy ORM models."""

from zoneboard.models.base import Base
from zoneboard.models.customer import Customer
from zoneboard.models.technician import Technician
from zoneboard.models.job import Job, JOB_STATUSES, TERMINAL_STATUSES
from zoneboard.models.audit_log import AuditLog

__all__ = [
    "Base", "Customer", "Technician", "Job", "AuditLog",
    "JOB_STATUSES", "TERMINAL_STATUSES",
]
