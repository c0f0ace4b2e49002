# backend/app/repositories/event_outbox_repository.py
"""
Repository for the event outbox.

Implements idempotent enqueue, pending fetch with row locking on PostgreSQL,
and delivery bookkeeping for the Celery dispatcher.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Optional, cast

from sqlalchemy import Select, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session
import ulid

from app.database.session_utils import get_dialect_name
from app.models.event_outbox import EventOutbox, EventOutboxStatus

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EventOutboxRepository:
    """Data access helpers for event outbox rows."""

    def __init__(self, db: Session):
        self.db = db
        self._dialect = get_dialect_name(db, default="postgresql").lower()

    def enqueue(
        self,
        event_type: str,
        aggregate_id: str,
        payload: Optional[dict[str, Any]] = None,
        *,
        idempotency_key: str,
    ) -> EventOutbox:
        """
        Insert a pending event unless one already exists for ``idempotency_key``.

        Returns the persisted row, existing or new. Never commits.
        """
        values = {
            "id": str(ulid.ULID()),
            "event_type": event_type,
            "aggregate_id": aggregate_id,
            "payload": payload or {},
            "idempotency_key": idempotency_key,
            "status": EventOutboxStatus.PENDING.value,
            "attempt_count": 0,
            "next_attempt_at": _now_utc(),
            "created_at": _now_utc(),
        }
        if self._dialect == "postgresql":
            stmt = pg_insert(EventOutbox).values(**values)
            stmt = stmt.on_conflict_do_nothing(index_elements=["idempotency_key"])
        else:
            stmt = insert(EventOutbox).values(**values)
            if self._dialect == "sqlite":
                stmt = stmt.prefix_with("OR IGNORE")
        result = self.db.execute(stmt)
        if not getattr(result, "rowcount", 0):
            logger.debug("Outbox event %s already enqueued", idempotency_key)

        row = self.db.execute(
            select(EventOutbox).where(EventOutbox.idempotency_key == idempotency_key)
        ).scalar_one_or_none()
        if row is None:
            raise RuntimeError("Outbox row not found after enqueue")
        return cast(EventOutbox, row)

    def fetch_pending(self, limit: int = 50) -> list[EventOutbox]:
        """Pending events whose next attempt is due, oldest first."""
        stmt: Select[Any] = (
            select(EventOutbox)
            .where(EventOutbox.status == EventOutboxStatus.PENDING.value)
            .where(EventOutbox.next_attempt_at <= _now_utc())
            .order_by(EventOutbox.next_attempt_at.asc(), EventOutbox.id.asc())
            .limit(limit)
        )
        if self._dialect == "postgresql":
            stmt = stmt.with_for_update(skip_locked=True)
        return cast(list[EventOutbox], self.db.execute(stmt).scalars().all())

    def get_by_id(self, event_id: str, for_update: bool = False) -> Optional[EventOutbox]:
        if for_update and self._dialect == "postgresql":
            stmt = (
                select(EventOutbox)
                .where(EventOutbox.id == event_id)
                .with_for_update(skip_locked=True)
            )
            return cast(Optional[EventOutbox], self.db.execute(stmt).scalar_one_or_none())
        return cast(Optional[EventOutbox], self.db.get(EventOutbox, event_id))

    def list_for_aggregate(self, aggregate_id: str) -> list[EventOutbox]:
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.aggregate_id == aggregate_id)
            .order_by(EventOutbox.created_at.asc(), EventOutbox.id.asc())
        )
        return cast(list[EventOutbox], self.db.execute(stmt).scalars().all())

    def record_success(self, event: EventOutbox, attempt_count: int) -> None:
        event.mark_sent(attempt_count)
        self.db.flush()

    def record_failure(
        self,
        event: EventOutbox,
        *,
        attempt_count: int,
        backoff_seconds: int,
        error: str,
        terminal: bool,
    ) -> None:
        if terminal:
            event.mark_failed(attempt_count, error)
        else:
            event.schedule_retry(
                _now_utc() + timedelta(seconds=max(backoff_seconds, 1)), attempt_count, error
            )
        self.db.flush()
