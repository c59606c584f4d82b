"""
Caller Identity

Authentication happens upstream; the gateway forwards the caller's id and
role in X-User-Id / X-User-Role headers. These dependencies read them and
enforce role rules per route.
"""

from typing import Callable, Iterable

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from yunshui.models import UserRole


class Caller(BaseModel):
    id: str
    role: UserRole

    def has_role(self, roles: Iterable[str]) -> bool:
        return self.role.value in roles


async def get_caller(
    x_user_id: str = Header(None, description="Authenticated user id"),
    x_user_role: str = Header(None, description="Authenticated user role"),
) -> Caller:
    """
    Build the caller from identity headers.

    Raises:
        HTTPException: 401 if either header is missing or the role is unknown
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id or X-User-Role header",
        )

    try:
        role = UserRole(x_user_role.upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )

    return Caller(id=x_user_id, role=role)


def require_roles(*roles: str) -> Callable:
    """Dependency factory: allow only callers whose role is in `roles`."""

    async def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if not caller.has_role(roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {caller.role.value} is not allowed to perform this action",
            )
        return caller

    return dependency


def ensure_owner_or_roles(caller: Caller, owner_id: str, roles: Iterable[str]) -> None:
    """Raise 403 unless the caller owns the record or holds one of `roles`."""
    if caller.id != owner_id and not caller.has_role(roles):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access this order",
        )
