"""Notifications API router."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import (
    BroadcastRequest, MessageResponse, NotificationOut,
    NotificationPreferencesIn, NotificationPreferencesOut,
)
from simpleit.services.audit_service import audit_service
from simpleit.services.notification_service import notification_service
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal
from simpleit.core.roles import Permission
from simpleit.core.security import RequirePermission, require_auth

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/")
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """The current user's notifications, newest first."""
    items = notification_service.list_for_user(db, principal.id, unread_only, limit)
    return [NotificationOut.model_validate(n) for n in items]


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    notification_service.mark_read(db, principal.id, notification_id)
    return MessageResponse(message="Notification marked as read")


@router.get("/preferences", response_model=NotificationPreferencesOut)
async def get_preferences(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    prefs = notification_service.get_preferences(db, principal.id)
    return notification_service.preferences_dict(prefs)


@router.put("/preferences", response_model=NotificationPreferencesOut)
async def update_preferences(
    body: NotificationPreferencesIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """Partially update notification kinds and quiet hours."""
    prefs = notification_service.update_preferences(
        db, principal.id, body.model_dump(exclude_unset=True)
    )
    return notification_service.preferences_dict(prefs)


@router.post("/broadcast")
async def broadcast(
    body: BroadcastRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.NOTIFICATIONS_MANAGE)),
):
    """Send a system announcement to every active user."""
    delivered = notification_service.broadcast(db, body.title, body.message, body.priority)
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.CREATE,
        entity_type=EntityType.NOTIFICATION,
        details={"title": body.title, "delivered": delivered},
    )
    return {"delivered": delivered}
