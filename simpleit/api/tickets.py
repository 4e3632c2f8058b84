"""Tickets API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import TicketCreate, TicketUpdate, TicketOut, MessageResponse
from simpleit.services.auth_service import auth_service
from simpleit.services.audit_service import audit_service
from simpleit.services.notification_service import notification_service
from simpleit.models.ticket import Ticket
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal, can_access_resource, filter_by_permissions
from simpleit.core.roles import Permission, has_permission
from simpleit.core.security import RequirePermission, require_auth, require_manager
from simpleit.core.exceptions import AuthorizationError, ResourceNotFoundError

router = APIRouter(prefix="/tickets", tags=["tickets"])

CLOSED_STATUSES = {"Resolved", "Closed"}


def _get_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise ResourceNotFoundError(f"Ticket {ticket_id} not found")
    return ticket


def _require(principal: Principal, permission: Permission) -> None:
    if not has_permission(principal.role, permission):
        raise AuthorizationError(
            "Insufficient permissions",
            required=permission.value,
            user_role=principal.role,
        )


@router.get("/")
async def list_tickets(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.TICKETS_VIEW_OWN)),
):
    """List tickets; employees see the ones they submitted or are assigned."""
    query = db.query(Ticket)
    if status:
        query = query.filter(Ticket.status == status)
    tickets = query.order_by(Ticket.id).all()
    strategies, team_member_ids = auth_service.list_scope(db, principal)
    visible = filter_by_permissions(
        tickets, principal.role, principal.id, owner_field="submitted_by_id",
        strategies=strategies, team_member_ids=team_member_ids,
    )
    return [TicketOut.model_validate(t) for t in visible]


@router.get("/{ticket_id}", response_model=TicketOut)
async def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """Get one ticket: submitter, assignee, submitter's manager, or a viewer of all."""
    ticket = _get_ticket(db, ticket_id)
    allowed = (
        has_permission(principal.role, Permission.TICKETS_VIEW_ALL)
        or ticket.assigned_to_id == principal.id
        or can_access_resource(
            principal,
            resource_owner_id=ticket.submitted_by_id,
            resource_manager_id=auth_service.get_manager_id(db, ticket.submitted_by_id),
        )
    )
    if not allowed:
        raise AuthorizationError(
            "Insufficient permissions",
            required=Permission.TICKETS_VIEW_ALL.value,
            user_role=principal.role,
        )
    return ticket


@router.post("/", response_model=TicketOut, status_code=201)
async def create_ticket(
    body: TicketCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.TICKETS_CREATE)),
):
    """Open a ticket on behalf of the current user."""
    ticket = Ticket(**body.model_dump(), status="Open", submitted_by_id=principal.id)
    db.add(ticket)
    db.flush()
    ticket.ticket_code = f"TKT-{ticket.id:04d}"
    db.commit()
    db.refresh(ticket)

    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.CREATE,
        entity_type=EntityType.TICKET,
        entity_id=ticket.id,
        details={"title": ticket.title, "priority": ticket.priority},
    )
    return ticket


@router.patch("/{ticket_id}", response_model=TicketOut)
async def update_ticket(
    ticket_id: int,
    body: TicketUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.TICKETS_UPDATE)),
):
    """Update a ticket. Reassigning needs tickets:assign, closing needs tickets:close."""
    ticket = _get_ticket(db, ticket_id)
    changes = body.model_dump(exclude_unset=True)

    if "assigned_to_id" in changes and changes["assigned_to_id"] != ticket.assigned_to_id:
        _require(principal, Permission.TICKETS_ASSIGN)
        if changes["assigned_to_id"] is not None:
            auth_service.get_user(db, changes["assigned_to_id"])
    if changes.get("status") in CLOSED_STATUSES and ticket.status not in CLOSED_STATUSES:
        _require(principal, Permission.TICKETS_CLOSE)

    old_assigned_id, old_status = ticket.assigned_to_id, ticket.status
    before = {key: getattr(ticket, key) for key in changes}
    for key, value in changes.items():
        setattr(ticket, key, value)
    db.commit()
    db.refresh(ticket)

    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.STATUS_CHANGE if ticket.status != old_status else AuditAction.UPDATE,
        entity_type=EntityType.TICKET,
        entity_id=ticket.id,
        details={key: {"from": before[key], "to": value} for key, value in changes.items()},
    )
    notification_service.notify_ticket_changes(
        db, ticket,
        old_assigned_id=old_assigned_id,
        old_status=old_status,
        performed_by=principal.username,
    )
    return ticket


@router.delete(
    "/{ticket_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_manager)],
)
async def delete_ticket(
    ticket_id: int,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.TICKETS_DELETE)),
):
    """Delete a ticket (managers and above holding tickets:delete)."""
    ticket = _get_ticket(db, ticket_id)
    db.delete(ticket)
    db.commit()
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.DELETE,
        entity_type=EntityType.TICKET,
        entity_id=ticket_id,
    )
    return MessageResponse(message="Ticket deleted")
