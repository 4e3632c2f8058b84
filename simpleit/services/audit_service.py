"""Audit service: append-only audit trail for user actions."""

import json
import logging
from typing import Optional, Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpleit.models.audit_log import AuditLog, AuditAction, EntityType

logger = logging.getLogger("simpleit")


class AuditService:
    """Records immutable audit log entries for system events."""

    @staticmethod
    def log(
        db: Session,
        user_id: Optional[int],
        action: AuditAction,
        entity_type: EntityType,
        entity_id: Optional[int] = None,
        details: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """Write a single audit log record.

        This method commits immediately. A failed write is logged and
        rolled back without failing the caller's operation.
        """
        entry = AuditLog(
            user_id=user_id,
            action=AuditAction(action).value,
            entity_type=EntityType(entity_type).value,
            entity_id=entity_id,
            details_json=json.dumps(details, default=str) if details else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to write audit entry %s %s", action, entity_type)
            return None
        return entry

    @staticmethod
    def log_from_request(
        db: Session,
        request: Request,
        user_id: Optional[int],
        action: AuditAction,
        entity_type: EntityType,
        entity_id: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> Optional[AuditLog]:
        """Write audit log extracting IP and user-agent from the request."""
        ip = request.client.host if request.client else None
        ua = request.headers.get("user-agent", "")[:500]
        return AuditService.log(
            db=db,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=ip,
            user_agent=ua,
        )

    @staticmethod
    def query_logs(
        db: Session,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ):
        """Query audit logs with filters and pagination."""
        query = db.query(AuditLog)

        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if action:
            query = query.filter(AuditLog.action == action.upper())
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type.upper())

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return {
            "logs": logs,
            "total": total,
            "page": page,
            "page_size": page_size,
        }


audit_service = AuditService()
