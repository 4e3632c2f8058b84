"""Users API router."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import UserOut, UserCreate, UserRoleUpdate
from simpleit.services.auth_service import auth_service
from simpleit.services.audit_service import audit_service
from simpleit.models.user import User
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal
from simpleit.core.roles import Permission
from simpleit.core.security import RequirePermission

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/")
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.USERS_VIEW_ALL)),
):
    """List all users."""
    result = auth_service.list_users(db, page, page_size)
    return {
        "users": [UserOut.model_validate(u) for u in result["users"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/subordinates")
async def list_subordinates(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.USERS_VIEW_SUBORDINATES)),
):
    """Users who report directly to the current user."""
    ids = auth_service.get_subordinate_ids(db, principal.id)
    users = db.query(User).filter(User.id.in_(ids)).order_by(User.id).all() if ids else []
    return [UserOut.model_validate(u) for u in users]


@router.post("/", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.USERS_CREATE)),
):
    """Create a user with a role no higher than the creator's."""
    user = auth_service.create_user(
        db,
        actor_role=principal.role,
        username=body.username,
        password=body.password,
        email=body.email,
        role=body.role,
        manager_id=body.manager_id,
        employee_id=body.employee_id,
    )
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.CREATE,
        entity_type=EntityType.USER,
        entity_id=user.id,
        details={"username": user.username, "role": user.role},
    )
    return user


@router.put("/{user_id}/role", response_model=UserOut)
async def change_user_role(
    user_id: int,
    body: UserRoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.USERS_EDIT_ROLES)),
):
    """Change a user's role."""
    old_role = auth_service.get_user(db, user_id).role
    user = auth_service.change_role(db, principal.role, user_id, body.role)
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.UPDATE,
        entity_type=EntityType.USER,
        entity_id=user.id,
        details={"role": {"from": old_role, "to": user.role}},
    )
    return user
