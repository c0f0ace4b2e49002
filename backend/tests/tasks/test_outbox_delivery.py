"""Outbox delivery: success, retry scheduling, terminal failures and redelivery."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from app.core.enums import PaymentStatus
from app.core.exceptions import ProviderException
from app.models.event_outbox import EventOutboxStatus
from app.models.wallet import WalletTransaction
from app.repositories.event_outbox_repository import EventOutboxRepository
from app.repositories.wallet_repository import WalletRepository
from app.services.booking_service import BookingService
from app.tasks import outbox_tasks
from app.tasks.outbox_tasks import (
    BACKOFF_SECONDS,
    MAX_DELIVERY_ATTEMPTS,
    deliver_outbox_event,
)


@pytest.fixture
def pending_booking(db, student_principal, test_mentor, future_session_time):
    return BookingService(db).create_booking(
        student_principal,
        mentor_id=test_mentor.id,
        session_time=future_session_time,
        duration=60,
        session_type="Mock interview",
    )


def _event(db, booking_id, event_type):
    for event in EventOutboxRepository(db).list_for_aggregate(booking_id):
        if event.event_type == event_type:
            return event
    raise AssertionError(f"no {event_type} event for {booking_id}")


def test_successful_delivery_marks_sent(db, pending_booking):
    event = _event(db, pending_booking.id, "booking.created")

    result = deliver_outbox_event(db, event.id)

    assert result.status == EventOutboxStatus.SENT.value
    assert result.attempt_count == 1
    db.refresh(event)
    assert event.status == EventOutboxStatus.SENT.value
    assert event.sent_at is not None


def test_already_sent_event_is_not_redelivered(db, pending_booking):
    event = _event(db, pending_booking.id, "booking.created")
    deliver_outbox_event(db, event.id)

    with patch("app.events.handlers.NotificationService.send_booking_requested") as send:
        result = deliver_outbox_event(db, event.id)

    send.assert_not_called()
    assert result.status == EventOutboxStatus.SENT.value


def test_provider_failure_schedules_retry(db, pending_booking):
    event = _event(db, pending_booking.id, "booking.created")

    with patch(
        "app.events.handlers.NotificationService.send_booking_requested",
        side_effect=ProviderException("Email provider unavailable"),
    ):
        result = deliver_outbox_event(db, event.id)

    assert result.status == EventOutboxStatus.PENDING.value
    assert result.backoff_seconds == BACKOFF_SECONDS[0]
    db.refresh(event)
    assert event.attempt_count == 1
    assert "Email provider unavailable" in event.last_error


def test_last_attempt_marks_failed(db, pending_booking):
    event = _event(db, pending_booking.id, "booking.created")
    event.attempt_count = MAX_DELIVERY_ATTEMPTS - 1
    db.commit()

    with patch(
        "app.events.handlers.NotificationService.send_booking_requested",
        side_effect=ProviderException("still down"),
    ):
        result = deliver_outbox_event(db, event.id)

    assert result.status == EventOutboxStatus.FAILED.value
    db.refresh(event)
    assert event.status == EventOutboxStatus.FAILED.value
    assert event.attempt_count == MAX_DELIVERY_ATTEMPTS


def test_unknown_event_type_fails_immediately(db):
    event = EventOutboxRepository(db).enqueue(
        "booking.rescheduled", "01HZZZZZZZZZZZZZZZZZZZZZZZ", {}, idempotency_key="unknown:1"
    )
    db.commit()

    result = deliver_outbox_event(db, event.id)

    assert result.status == EventOutboxStatus.FAILED.value
    assert result.attempt_count == 1


def test_enqueue_is_idempotent(db, pending_booking):
    repo = EventOutboxRepository(db)
    first = _event(db, pending_booking.id, "booking.created")

    again = repo.enqueue(
        "booking.created",
        pending_booking.id,
        {"booking_id": pending_booking.id},
        idempotency_key=first.idempotency_key,
    )

    assert again.id == first.id
    assert len(repo.list_for_aggregate(pending_booking.id)) == 1


def test_completion_credit_survives_redelivery(
    db, mentor_principal, test_mentor, pending_booking
):
    service = BookingService(db)
    service.confirm_booking(mentor_principal, pending_booking.id)
    service.complete_booking(mentor_principal, pending_booking.id, PaymentStatus.PAID.value)
    event = _event(db, pending_booking.id, "booking.completed")

    assert deliver_outbox_event(db, event.id).status == EventOutboxStatus.SENT.value

    # Worker crashed after the credit but before acknowledging: event is delivered again
    event.status = EventOutboxStatus.PENDING.value
    db.commit()
    assert deliver_outbox_event(db, event.id).status == EventOutboxStatus.SENT.value

    wallet = WalletRepository(db).get_by_mentor(test_mentor.id, refresh=True)
    assert Decimal(str(wallet.balance)) == Decimal("500.00")
    credits = db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet.id).all()
    assert len(credits) == 1


def test_completion_credit_rolls_back_with_failed_delivery(
    db, mentor_principal, test_mentor, pending_booking
):
    service = BookingService(db)
    service.confirm_booking(mentor_principal, pending_booking.id)
    service.complete_booking(mentor_principal, pending_booking.id, PaymentStatus.PAID.value)
    event = _event(db, pending_booking.id, "booking.completed")

    with patch(
        "app.events.handlers.NotificationService.send_review_request",
        side_effect=ProviderException("Email provider unavailable"),
    ):
        result = deliver_outbox_event(db, event.id)

    assert result.status == EventOutboxStatus.PENDING.value
    wallet = WalletRepository(db).get_by_mentor(test_mentor.id, refresh=True)
    assert wallet is None or Decimal(str(wallet.balance)) == Decimal("0")
    assert db.query(WalletTransaction).count() == 0

    assert deliver_outbox_event(db, event.id).status == EventOutboxStatus.SENT.value

    wallet = WalletRepository(db).get_by_mentor(test_mentor.id, refresh=True)
    assert Decimal(str(wallet.balance)) == Decimal("500.00")
    assert db.query(WalletTransaction).count() == 1


def test_refunded_completion_issues_no_credit(db, mentor_principal, test_mentor, pending_booking):
    service = BookingService(db)
    service.confirm_booking(mentor_principal, pending_booking.id)
    service.complete_booking(mentor_principal, pending_booking.id, PaymentStatus.REFUNDED.value)

    deliver_outbox_event(db, _event(db, pending_booking.id, "booking.completed").id)

    assert WalletRepository(db).get_by_mentor(test_mentor.id) is None


def test_dispatch_pending_schedules_due_events(db, pending_booking):
    from tests.conftest import TestSessionLocal

    with patch.object(outbox_tasks, "SessionLocal", TestSessionLocal), patch.object(
        outbox_tasks.deliver_event, "apply_async"
    ) as apply_async:
        scheduled = outbox_tasks.dispatch_pending()

    assert scheduled == 1
    event = _event(db, pending_booking.id, "booking.created")
    apply_async.assert_called_once_with((event.id,), queue="notifications")
