"""Notification and per-user notification preference models."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from simpleit.db.base import Base


class Notification(Base):
    """In-app notification delivered to one user."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # Asset, Ticket, System, Employee
    priority = Column(String(20), nullable=False, default="medium")
    category = Column(String(30), nullable=False, default="alerts")
    entity_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)


class NotificationPreference(Base):
    """Which notification kinds a user receives, plus quiet hours."""
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    ticket_assignments = Column(Boolean, default=True, nullable=False)
    ticket_status_changes = Column(Boolean, default=True, nullable=False)
    asset_assignments = Column(Boolean, default=True, nullable=False)
    maintenance_alerts = Column(Boolean, default=True, nullable=False)
    upgrade_requests = Column(Boolean, default=True, nullable=False)
    system_announcements = Column(Boolean, default=True, nullable=False)
    employee_changes = Column(Boolean, default=True, nullable=False)
    dnd_enabled = Column(Boolean, default=False, nullable=False)
    dnd_start_time = Column(String(5), nullable=True)  # "HH:MM"
    dnd_end_time = Column(String(5), nullable=True)
    dnd_days_json = Column(Text, nullable=True)  # JSON list, 0=Sunday .. 6=Saturday
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
