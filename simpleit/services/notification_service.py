"""Notification service: preferences, quiet hours and delivery."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from simpleit.models.notification import Notification, NotificationPreference
from simpleit.models.user import User
from simpleit.core.exceptions import ResourceNotFoundError, ValidationError

logger = logging.getLogger("simpleit")

URGENT_TICKET_PRIORITIES = {"critical", "high", "urgent"}

PREFERENCE_FLAGS = (
    "ticket_assignments",
    "ticket_status_changes",
    "asset_assignments",
    "maintenance_alerts",
    "upgrade_requests",
    "system_announcements",
    "employee_changes",
)


def weekday_index(moment: datetime) -> int:
    """Day of week with 0=Sunday .. 6=Saturday, the stored dnd_days convention."""
    return (moment.weekday() + 1) % 7


def dnd_days(prefs: NotificationPreference) -> List[int]:
    if not prefs.dnd_days_json:
        return []
    return [int(d) for d in json.loads(prefs.dnd_days_json)]


def is_in_dnd_period(prefs: Optional[NotificationPreference], now: datetime) -> bool:
    """Whether ``now`` falls inside the user's quiet hours.

    Ranges where start > end wrap past midnight (22:00-08:00). Both bounds are
    inclusive. An empty day list means every day.
    """
    if prefs is None or not prefs.dnd_enabled:
        return False
    start, end = prefs.dnd_start_time, prefs.dnd_end_time
    if not start or not end:
        return False

    days = dnd_days(prefs)
    if days and weekday_index(now) not in days:
        return False

    current = now.strftime("%H:%M")
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def preference_flag_for(type_: str, category: str) -> Optional[str]:
    """Preference column governing a notification, or None if always on."""
    if category == "maintenance":
        return "maintenance_alerts"
    if category == "approvals":
        return "upgrade_requests"
    if type_ == "Ticket" and category == "assignments":
        return "ticket_assignments"
    if type_ == "Ticket" and category == "status_changes":
        return "ticket_status_changes"
    if type_ == "Asset" and category == "assignments":
        return "asset_assignments"
    if type_ == "System":
        return "system_announcements"
    if type_ == "Employee":
        return "employee_changes"
    return None


def is_notification_enabled(
    prefs: Optional[NotificationPreference], type_: str, category: str
) -> bool:
    if prefs is None:
        return True
    flag = preference_flag_for(type_, category)
    if flag is None:
        return True
    return bool(getattr(prefs, flag))


class NotificationService:
    """Creates notifications subject to user preferences."""

    @staticmethod
    def get_preferences(db: Session, user_id: int) -> Optional[NotificationPreference]:
        return (
            db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user_id)
            .first()
        )

    @staticmethod
    def preferences_dict(prefs: Optional[NotificationPreference]) -> Dict[str, Any]:
        """Preferences as plain data; defaults when none are stored."""
        if prefs is None:
            data = {flag: True for flag in PREFERENCE_FLAGS}
            data.update(dnd_enabled=False, dnd_start_time=None, dnd_end_time=None, dnd_days=[])
            return data
        data = {flag: getattr(prefs, flag) for flag in PREFERENCE_FLAGS}
        data.update(
            dnd_enabled=prefs.dnd_enabled,
            dnd_start_time=prefs.dnd_start_time,
            dnd_end_time=prefs.dnd_end_time,
            dnd_days=dnd_days(prefs),
        )
        return data

    @staticmethod
    def update_preferences(db: Session, user_id: int, changes: Dict[str, Any]) -> NotificationPreference:
        """Apply a partial update, creating the preference row on first use."""
        prefs = NotificationService.get_preferences(db, user_id)
        if prefs is None:
            prefs = NotificationPreference(user_id=user_id)
            for flag in PREFERENCE_FLAGS:
                setattr(prefs, flag, True)
            prefs.dnd_enabled = False
            db.add(prefs)

        for key, value in changes.items():
            if value is None:
                continue
            if key == "dnd_days":
                if any(d < 0 or d > 6 for d in value):
                    raise ValidationError("dnd_days must be between 0 (Sunday) and 6 (Saturday)")
                prefs.dnd_days_json = json.dumps(sorted(set(value)))
            elif key in PREFERENCE_FLAGS or key in ("dnd_enabled", "dnd_start_time", "dnd_end_time"):
                setattr(prefs, key, value)

        if prefs.dnd_enabled and not (prefs.dnd_start_time and prefs.dnd_end_time):
            raise ValidationError("Do Not Disturb needs both a start and an end time")

        db.commit()
        db.refresh(prefs)
        return prefs

    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type_: str,
        entity_id: Optional[int] = None,
        priority: str = "medium",
        category: str = "alerts",
        now: Optional[datetime] = None,
    ) -> Optional[Notification]:
        """Store a notification unless the user's preferences suppress it.

        Returns None when blocked by quiet hours (critical priority is never
        blocked) or when the user disabled this kind of notification.
        """
        prefs = NotificationService.get_preferences(db, user_id)

        if priority != "critical" and is_in_dnd_period(prefs, now or datetime.now()):
            logger.debug("Notification blocked by DND: user %s, %s", user_id, title)
            return None

        if not is_notification_enabled(prefs, type_, category):
            logger.debug("Notification skipped: user %s disabled %s/%s", user_id, type_, category)
            return None

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type_,
            entity_id=entity_id,
            priority=priority,
            category=category,
            is_read=False,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info("Notification created for user %s: %s", user_id, title)
        return notification

    @staticmethod
    def notify_ticket_changes(
        db: Session,
        ticket,
        old_assigned_id: Optional[int] = None,
        old_status: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> List[Notification]:
        """Notify on ticket (re)assignment and on status changes."""
        sent = []
        code = ticket.ticket_code or f"#{ticket.id}"

        if ticket.assigned_to_id and ticket.assigned_to_id != old_assigned_id:
            if (ticket.priority or "").lower() in URGENT_TICKET_PRIORITIES:
                n = NotificationService.create_notification(
                    db, ticket.assigned_to_id,
                    title=f"Urgent: Ticket {code} Assigned",
                    message=f"HIGH PRIORITY ({ticket.priority}): {ticket.title} - Please address immediately",
                    type_="Ticket", entity_id=ticket.id,
                    priority="critical", category="assignments",
                )
            else:
                by = f" by {performed_by}" if performed_by else ""
                n = NotificationService.create_notification(
                    db, ticket.assigned_to_id,
                    title=f"Ticket {code} Assigned to You",
                    message=f'Ticket "{ticket.title}" has been assigned to you{by}',
                    type_="Ticket", entity_id=ticket.id,
                    priority="high", category="assignments",
                )
            if n:
                sent.append(n)

        if old_status and ticket.status != old_status:
            recipients = [ticket.submitted_by_id]
            if ticket.assigned_to_id and ticket.assigned_to_id != ticket.submitted_by_id:
                recipients.append(ticket.assigned_to_id)
            for user_id in recipients:
                n = NotificationService.create_notification(
                    db, user_id,
                    title=f"Ticket {code} Status Updated",
                    message=f'Ticket "{ticket.title}" status changed from {old_status} to {ticket.status}',
                    type_="Ticket", entity_id=ticket.id,
                    priority="medium", category="status_changes",
                )
                if n:
                    sent.append(n)
        return sent

    @staticmethod
    def notify_asset_assignment(db: Session, asset, user_id: int) -> Optional[Notification]:
        name = " ".join(p for p in (asset.brand, asset.model_number) if p) or asset.asset_tag
        return NotificationService.create_notification(
            db, user_id,
            title="New Asset Assigned to You",
            message=f'Asset "{name}" has been assigned to you',
            type_="Asset", entity_id=asset.id,
            priority="medium", category="assignments",
        )

    @staticmethod
    def broadcast(db: Session, title: str, message: str, priority: str = "medium") -> int:
        """Send a system announcement to every active user. Returns deliveries."""
        user_ids = [row.id for row in db.query(User.id).filter(User.is_active == True).all()]  # noqa: E712
        delivered = 0
        for user_id in user_ids:
            if NotificationService.create_notification(
                db, user_id, title, message, "System",
                priority=priority, category="announcements",
            ):
                delivered += 1
        return delivered

    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False, limit: int = 50):
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        """Mark one of the user's notifications read."""
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise ResourceNotFoundError(f"Notification {notification_id} not found")
        notification.is_read = True
        db.commit()
        return notification

    @staticmethod
    def cleanup_old_notifications(
        db: Session, retention_days: int, now: Optional[datetime] = None
    ) -> int:
        """Delete read notifications older than the retention window."""
        # created_at is stored as naive UTC
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        cutoff = now - timedelta(days=retention_days)
        deleted = (
            db.query(Notification)
            .filter(Notification.is_read == True, Notification.created_at < cutoff)  # noqa: E712
            .delete(synchronize_session=False)
        )
        db.commit()
        logger.info(
            "Notification cleanup removed %s notifications older than %s",
            deleted, cutoff.isoformat(),
        )
        return deleted


notification_service = NotificationService()
