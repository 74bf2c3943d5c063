"""Pydantic request/response schemas."""

from zoneboard.schemas.board import JobCard, BucketView, TechCapacity, ZoneColumn, ZoneBoard
from zoneboard.schemas.actions import (
    MoveCardRequest, ReorderRequest, AssignTechQuickRequest, AssignJobRequest,
    UnassignRequest, QuickCreateRequest, ConflictCheckRequest, NextSlotRequest,
    JobTimeUpdate, ConflictingJob, ActionResponse,
)
from zoneboard.schemas.technician import TechnicianCreate, TechnicianRead

__all__ = [
    "JobCard", "BucketView", "TechCapacity", "ZoneColumn", "ZoneBoard",
    "MoveCardRequest", "ReorderRequest", "AssignTechQuickRequest", "AssignJobRequest",
    "UnassignRequest", "QuickCreateRequest", "ConflictCheckRequest", "NextSlotRequest",
    "JobTimeUpdate", "ConflictingJob", "ActionResponse",
    "TechnicianCreate", "TechnicianRead",
]
