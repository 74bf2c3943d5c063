"""FastAPI dependency providers for caller identity and role enforcement."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

ROLES = ("admin", "dispatcher", "technician")


@dataclass
class Caller:
    user_id: str
    role: str  # 'admin' | 'dispatcher' | 'technician'

    @property
    def is_technician(self) -> bool:
        return self.role == "technician"


async def require_caller(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
) -> Caller:
    """Resolve the caller from the identity headers set by the gateway."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if x_user_role not in ROLES:
        raise HTTPException(403, "Unknown role")
    return Caller(user_id=x_user_id, role=x_user_role)


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(caller: Caller = Depends(require_caller)) -> Caller:
        if caller.role not in allowed_roles:
            raise HTTPException(403, "Insufficient permissions")
        return caller
    return _check
