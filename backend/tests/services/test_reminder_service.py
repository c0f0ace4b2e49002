"""Session reminders are enqueued once per booking and window."""

from datetime import datetime, timedelta, timezone

import pytest

from app.repositories.event_outbox_repository import EventOutboxRepository
from app.services.booking_service import BookingService
from app.services.reminder_service import BOOKING_REMINDER, ReminderService


def _confirmed_booking(db, student_principal, mentor_principal, mentor_id, starts_in):
    service = BookingService(db)
    booking = service.create_booking(
        student_principal,
        mentor_id=mentor_id,
        session_time=datetime.now(timezone.utc) + starts_in,
        duration=60,
        session_type="Career guidance",
    )
    return service.confirm_booking(mentor_principal, booking.id)


def _reminders(db, booking_id):
    return [
        e
        for e in EventOutboxRepository(db).list_for_aggregate(booking_id)
        if e.event_type == BOOKING_REMINDER
    ]


def test_24h_reminder_enqueued_once(db, student_principal, mentor_principal, test_mentor):
    booking = _confirmed_booking(
        db, student_principal, mentor_principal, test_mentor.id, timedelta(hours=12)
    )
    service = ReminderService(db)

    first = service.enqueue_due_reminders("24h")
    second = service.enqueue_due_reminders("24h")

    assert first == {"24h": 1}
    assert second == {"24h": 0}
    events = _reminders(db, booking.id)
    assert len(events) == 1
    assert events[0].payload == {"booking_id": booking.id, "kind": "24h"}
    assert events[0].idempotency_key == f"booking:{booking.id}:reminder_24h"


def test_1h_reminder_window(db, student_principal, mentor_principal, test_mentor):
    booking = _confirmed_booking(
        db, student_principal, mentor_principal, test_mentor.id, timedelta(minutes=45)
    )

    counts = ReminderService(db).enqueue_due_reminders()

    assert counts == {"24h": 0, "1h": 1}
    assert [e.payload["kind"] for e in _reminders(db, booking.id)] == ["1h"]


def test_pending_bookings_get_no_reminder(db, student_principal, test_mentor):
    BookingService(db).create_booking(
        student_principal,
        mentor_id=test_mentor.id,
        session_time=datetime.now(timezone.utc) + timedelta(hours=12),
        duration=60,
        session_type="Career guidance",
    )

    assert ReminderService(db).enqueue_due_reminders("24h") == {"24h": 0}


@pytest.mark.parametrize("starts_in", [timedelta(days=3), timedelta(minutes=10)])
def test_sessions_outside_windows_are_skipped(
    db, student_principal, mentor_principal, test_mentor, starts_in
):
    _confirmed_booking(db, student_principal, mentor_principal, test_mentor.id, starts_in)

    assert ReminderService(db).enqueue_due_reminders() == {"24h": 0, "1h": 0}
