# backend/app/tasks/__init__.py
"""
Celery tasks package for MatePeak.

- Outbox dispatch and delivery (booking emails, wallet credits)
- Session reminder sweep
"""

from app.tasks.celery_app import BaseTask, celery_app
from app.tasks.outbox_tasks import deliver_event, dispatch_pending
from app.tasks.reminder_tasks import enqueue_due_reminders

__all__ = [
    "BaseTask",
    "celery_app",
    "deliver_event",
    "dispatch_pending",
    "enqueue_due_reminders",
]
