"""Structured failures for board actions.

Lower layers raise ``SchedulingError`` subclasses; the action layer catches
them and returns an ``ActionResult`` carrying the matching ``ErrorKind``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TERMINAL_STATUS = "terminal_status"
    CONFLICT = "conflict"
    INVALID_TIME_SLOT = "invalid_time_slot"
    WRITE_FAILED = "write_failed"


class SchedulingError(Exception):
    kind: ErrorKind = ErrorKind.WRITE_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class JobNotFoundError(SchedulingError):
    kind = ErrorKind.NOT_FOUND


class UnknownPlacementError(SchedulingError):
    """Target zone or bucket is not on the board."""

    kind = ErrorKind.NOT_FOUND


class TerminalJobError(SchedulingError):
    kind = ErrorKind.TERMINAL_STATUS


class JobWriteError(SchedulingError):
    kind = ErrorKind.WRITE_FAILED


class StaleJobError(JobWriteError):
    """The job row changed between read and write (version mismatch)."""


class JobSourceError(SchedulingError):
    """Reading jobs failed. Re-raised unchanged by board listing."""

    kind = ErrorKind.WRITE_FAILED


@dataclass
class ActionResult:
    ok: bool
    data: dict[str, Any] | None = None
    error: ErrorKind | None = None
    message: str | None = None
    conflicts: list[Any] = field(default_factory=list)

    @classmethod
    def success(cls, **data: Any) -> "ActionResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str, conflicts: list[Any] | None = None
    ) -> "ActionResult":
        return cls(ok=False, error=kind, message=message, conflicts=conflicts or [])
