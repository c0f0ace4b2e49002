# backend/app/tasks/outbox_tasks.py
"""
Celery tasks for dispatching booking outbox events.

Implements a two-step workflow:
1. `outbox.dispatch_pending` periodically enqueues delivery tasks.
2. `outbox.deliver_event` runs the event's handler once; failures are
   rescheduled on the event row with backoff.

Delivery is at-least-once. Handlers are safe to repeat: the wallet credit
is keyed on the booking id, and emails are the only other side effect.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import monotonic
from typing import Optional

from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import SessionLocal
from app.database.session_utils import session_scope
from app.events.handlers import UnknownEventType, process_event
from app.models.event_outbox import EventOutboxStatus
from app.monitoring.prometheus_metrics import PrometheusMetrics
from app.repositories.event_outbox_repository import EventOutboxRepository
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)

MAX_DELIVERY_ATTEMPTS = 5
BACKOFF_SECONDS = [30, 120, 600, 1800, 7200]


def _next_backoff(attempt_number: int) -> int:
    """Return backoff delay for the given attempt (1-indexed)."""
    index = max(0, min(attempt_number - 1, len(BACKOFF_SECONDS) - 1))
    return BACKOFF_SECONDS[index]


@dataclass
class DeliveryResult:
    event_id: str
    status: str
    attempt_count: int = 0
    backoff_seconds: Optional[int] = None
    error: Optional[str] = None


def deliver_outbox_event(session: Session, event_id: str) -> DeliveryResult:
    """
    Run one delivery attempt for an outbox event and record the outcome.

    Handler side effects and the SENT mark commit together. On failure the
    handler's work is rolled back, the attempt is recorded, and the event is
    rescheduled (or marked FAILED after ``MAX_DELIVERY_ATTEMPTS``).
    """
    repo = EventOutboxRepository(session)
    event = repo.get_by_id(event_id, for_update=True)
    if event is None:
        logger.warning("Outbox event %s missing or locked; skipping", event_id)
        return DeliveryResult(event_id=event_id, status="skipped")
    if event.status != EventOutboxStatus.PENDING.value:
        return DeliveryResult(event_id=event_id, status=event.status, attempt_count=event.attempt_count)

    event_type = event.event_type
    attempt_number = (event.attempt_count or 0) + 1
    PrometheusMetrics.record_outbox_attempt(event_type)
    start = monotonic()
    try:
        process_event(event, session)
        repo.record_success(event, attempt_number)
        session.commit()
    except Exception as exc:
        session.rollback()
        PrometheusMetrics.observe_outbox_dispatch(event_type, monotonic() - start)
        terminal = isinstance(exc, UnknownEventType) or attempt_number >= MAX_DELIVERY_ATTEMPTS
        backoff = _next_backoff(attempt_number)

        event = repo.get_by_id(event_id)
        if event is None:
            raise
        repo.record_failure(
            event,
            attempt_count=attempt_number,
            backoff_seconds=backoff,
            error=f"{type(exc).__name__}: {exc}",
            terminal=terminal,
        )
        session.commit()

        if terminal:
            PrometheusMetrics.record_outbox_outcome(event_type, "failed")
            logger.error(
                "Outbox event %s (%s) failed permanently after %s attempts: %s",
                event_id,
                event_type,
                attempt_number,
                exc,
            )
            return DeliveryResult(
                event_id=event_id,
                status=EventOutboxStatus.FAILED.value,
                attempt_count=attempt_number,
                error=str(exc),
            )
        logger.warning(
            "Error delivering outbox event %s (%s); retrying in %ss: %s",
            event_id,
            event_type,
            backoff,
            exc,
        )
        return DeliveryResult(
            event_id=event_id,
            status=EventOutboxStatus.PENDING.value,
            attempt_count=attempt_number,
            backoff_seconds=backoff,
            error=str(exc),
        )

    PrometheusMetrics.observe_outbox_dispatch(event_type, monotonic() - start)
    PrometheusMetrics.record_outbox_outcome(event_type, "sent")
    logger.info(
        "Delivered outbox event %s type=%s attempts=%s", event_id, event_type, attempt_number
    )
    return DeliveryResult(
        event_id=event_id, status=EventOutboxStatus.SENT.value, attempt_count=attempt_number
    )


@celery_app.task(name="outbox.dispatch_pending", max_retries=0, queue="notifications")
def dispatch_pending() -> int:
    """
    Fetch pending outbox events and enqueue delivery tasks.

    Returns the number of events scheduled.
    """
    with session_scope(SessionLocal) as session:
        repo = EventOutboxRepository(session)
        pending = repo.fetch_pending(limit=settings.outbox_batch_size)
        event_ids = [event.id for event in pending]

    for event_id in event_ids:
        deliver_event.apply_async((event_id,), queue="notifications")
    if event_ids:
        logger.info("Scheduled %s outbox events for delivery", len(event_ids))
    return len(event_ids)


@celery_app.task(name="outbox.deliver_event", max_retries=0, queue="notifications")
def deliver_event(event_id: str) -> Optional[str]:
    """
    Deliver a single outbox event.

    Failed attempts are not retried by Celery; the event stays PENDING with a
    later ``next_attempt_at`` and ``dispatch_pending`` picks it up again.
    """
    session = SessionLocal()
    try:
        result = deliver_outbox_event(session, event_id)
    finally:
        session.close()
    return result.status
