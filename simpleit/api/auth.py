"""Auth API router: login, logout, me."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import LoginRequest, TokenResponse, MeResponse, MessageResponse
from simpleit.services.auth_service import auth_service
from simpleit.services.audit_service import audit_service
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal
from simpleit.core.roles import get_role_definition, permissions_of
from simpleit.core.security import SESSION_USER_KEY, require_auth
from simpleit.core.exceptions import AuthenticationError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Check credentials, start a session and return a bearer token."""
    try:
        result = auth_service.authenticate(db, body.username, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    request.session.clear()
    request.session[SESSION_USER_KEY] = result["user"]["id"]
    audit_service.log_from_request(
        db, request,
        user_id=result["user"]["id"],
        action=AuditAction.LOGIN,
        entity_type=EntityType.SESSION,
        entity_id=result["user"]["id"],
    )
    return result


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """End the session."""
    request.session.clear()
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.LOGOUT,
        entity_type=EntityType.SESSION,
        entity_id=principal.id,
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(principal: Principal = Depends(require_auth)):
    """Current user with role and effective permissions."""
    definition = get_role_definition(principal.role)
    return MeResponse(
        id=principal.id,
        username=principal.username,
        role=principal.role,
        role_display_name=dict(definition.display_name) if definition else {"en": principal.role},
        employee_id=principal.employee_id,
        manager_id=principal.manager_id,
        permissions=sorted(permissions_of(principal.role)),
    )
