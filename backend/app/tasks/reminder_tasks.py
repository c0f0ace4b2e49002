# backend/app/tasks/reminder_tasks.py
"""Periodic session reminder sweep."""

from typing import Dict

from celery.utils.log import get_task_logger

from app.database import SessionLocal
from app.database.session_utils import session_scope
from app.services.reminder_service import ReminderService
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="reminders.enqueue_due", max_retries=0, queue="notifications")
def enqueue_due_reminders() -> Dict[str, int]:
    """Enqueue 24h and 1h reminders for confirmed sessions entering their window."""
    with session_scope(SessionLocal) as session:
        counts = ReminderService(session).enqueue_due_reminders()
    logger.info("Reminder sweep finished: %s", counts)
    return counts
