# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for MatePeak.

Intervals come from settings so they can be tightened in development.
"""

from datetime import timedelta
from typing import Any, Dict

from app.core.config import settings


def get_beat_schedule(environment: str = "development") -> Dict[str, Dict[str, Any]]:
    """Return the periodic task schedule for ``environment``."""
    return {
        "dispatch-outbox-events": {
            "task": "outbox.dispatch_pending",
            "schedule": timedelta(seconds=settings.outbox_dispatch_interval_seconds),
            "options": {"queue": "notifications", "expires": 60},
        },
        "enqueue-session-reminders": {
            "task": "reminders.enqueue_due",
            "schedule": timedelta(seconds=settings.reminder_interval_seconds),
            "options": {
                "queue": "notifications",
                "priority": 5 if environment == "production" else 3,
            },
        },
    }
