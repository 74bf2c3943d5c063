"""Mapping of action results onto HTTP responses."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from zoneboard.schedule.errors import ActionResult, ErrorKind
from zoneboard.schemas import ActionResponse, ConflictingJob

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TERMINAL_STATUS: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_TIME_SLOT: 422,
    ErrorKind.WRITE_FAILED: 500,
}


def action_response(result: ActionResult) -> JSONResponse:
    body = ActionResponse(
        ok=result.ok,
        data=result.data,
        error=result.error.value if result.error else None,
        message=result.message,
        conflicts=[ConflictingJob.model_validate(j) for j in result.conflicts],
    )
    status = 200 if result.ok else _STATUS_BY_KIND[result.error]
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))
