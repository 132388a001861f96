import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timeutils import as_utc, utcnow
from ..db import models
from ..db.session import SessionLocal

logger = logging.getLogger(__name__)


def scan_due_reminders(db: Session, now: Optional[datetime] = None) -> int:
    """Create one notification per due reminder per due date. Returns how many were created."""
    now = now or utcnow()
    due = (
        db.query(models.PetReminder)
        .filter(models.PetReminder.is_enabled.is_(True), models.PetReminder.next_due_date <= now)
        .all()
    )
    created = 0
    for reminder in due:
        due_at = as_utc(reminder.next_due_date)
        if as_utc(reminder.last_notified_due_date) == due_at:
            continue
        db.add(
            models.Notification(
                user_id=reminder.user_id,
                type="reminder_due",
                message=f"{reminder.title} is due",
                metadata_payload={
                    "reminder_id": str(reminder.id),
                    "dog_id": str(reminder.dog_id),
                    "due_at": due_at.isoformat(),
                },
            )
        )
        reminder.last_notified_due_date = reminder.next_due_date
        db.add(reminder)
        created += 1
    db.commit()
    return created


def reminder_scan_job() -> None:
    db = SessionLocal()
    try:
        created = scan_due_reminders(db)
        if created:
            logger.info("[REMINDERS] Created %d due reminder notification(s)", created)
    except Exception:
        db.rollback()
        logger.exception("[REMINDERS] Due reminder scan failed")
    finally:
        db.close()


def start_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        reminder_scan_job,
        "interval",
        minutes=settings.reminder_scan_interval_minutes,
        id="reminder_scan",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("[STARTUP] Reminder scan every %d minute(s)", settings.reminder_scan_interval_minutes)
    return scheduler
