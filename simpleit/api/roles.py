"""Roles API router."""

from typing import List

from fastapi import APIRouter, Depends

from simpleit.schemas.schemas import RoleOut
from simpleit.core.rbac import Principal
from simpleit.core.roles import RoleDefinition, get_roles_by_level, get_accessible_roles
from simpleit.core.security import require_auth

router = APIRouter(prefix="/roles", tags=["roles"])


def _role_out(definition: RoleDefinition) -> RoleOut:
    return RoleOut(
        id=definition.id,
        level=definition.level,
        display_name=dict(definition.display_name),
        permissions=sorted(definition.permissions),
    )


@router.get("/", response_model=List[RoleOut])
async def list_roles(principal: Principal = Depends(require_auth)):
    """All roles, most privileged first."""
    return [_role_out(d) for d in get_roles_by_level()]


@router.get("/assignable", response_model=List[RoleOut])
async def assignable_roles(principal: Principal = Depends(require_auth)):
    """Roles the current user may hand out (their own level or below)."""
    return [_role_out(d) for d in get_accessible_roles(principal.role)]
