"""Audit log model: append-only."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from simpleit.db.base import Base


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ASSIGN = "ASSIGN"
    UNASSIGN = "UNASSIGN"
    CONFIG_CHANGE = "CONFIG_CHANGE"
    STATUS_CHANGE = "STATUS_CHANGE"


class EntityType(str, enum.Enum):
    USER = "USER"
    EMPLOYEE = "EMPLOYEE"
    ASSET = "ASSET"
    TICKET = "TICKET"
    NOTIFICATION = "NOTIFICATION"
    SESSION = "SESSION"


class AuditLog(Base):
    """Immutable trail of user actions.

    This table is APPEND-ONLY: no UPDATE or DELETE operations should ever
    be performed on it (enforced at application level).
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(30), nullable=False, index=True)
    entity_type = Column(String(30), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True)
    details_json = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
