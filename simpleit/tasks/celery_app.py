"""Celery app and periodic maintenance tasks."""

import logging

from celery import Celery
from celery.schedules import crontab

from simpleit.core.config import settings

logger = logging.getLogger("simpleit")

celery_app = Celery(
    "simpleit",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_soft_time_limit=300,
    task_time_limit=600,
)

if settings.NOTIFICATION_CLEANUP_ENABLED:
    celery_app.conf.beat_schedule = {
        "cleanup-old-notifications": {
            "task": "cleanup_old_notifications",
            "schedule": crontab(hour=2, minute=0),
        },
    }


@celery_app.task(name="cleanup_old_notifications")
def cleanup_old_notifications(retention_days: int = None) -> dict:
    """Delete read notifications past the retention window."""
    from simpleit.db.session import SessionLocal
    from simpleit.services.notification_service import notification_service

    days = retention_days or settings.NOTIFICATION_RETENTION_DAYS
    db = SessionLocal()
    try:
        deleted = notification_service.cleanup_old_notifications(db, days)
        return {"deleted": deleted, "retention_days": days}
    except Exception:
        db.rollback()
        logger.exception("Notification cleanup failed")
        raise
    finally:
        db.close()
