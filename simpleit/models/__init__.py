"""Models package: import all models so create_all can discover them."""

from simpleit.models.user import User
from simpleit.models.employee import Employee
from simpleit.models.asset import Asset
from simpleit.models.ticket import Ticket
from simpleit.models.audit_log import AuditLog, AuditAction, EntityType
from simpleit.models.notification import Notification, NotificationPreference

__all__ = [
    "User", "Employee", "Asset", "Ticket",
    "AuditLog", "AuditAction", "EntityType",
    "Notification", "NotificationPreference",
]
