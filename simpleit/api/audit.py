"""Audit log API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import AuditLogOut
from simpleit.services.audit_service import audit_service
from simpleit.core.rbac import Principal
from simpleit.core.roles import Permission
from simpleit.core.security import RequirePermission

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("/")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.AUDIT_LOGS)),
):
    """Query audit logs."""
    result = audit_service.query_logs(db, user_id, action, entity_type, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }
