"""Availability checks: half-open windows and input validation."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import NotFoundException, ValidationException
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService


def _book(db, principal, mentor_id, start, duration=60):
    return BookingService(db).create_booking(
        principal,
        mentor_id=mentor_id,
        session_time=start,
        duration=duration,
        session_type="Career guidance",
    )


def test_free_mentor_is_available(db, test_mentor, future_session_time):
    result = AvailabilityService(db).check_availability(test_mentor.id, future_session_time, 60)

    assert result.available is True
    assert result.conflicts == []
    assert result.end - result.start == timedelta(minutes=60)


def test_back_to_back_sessions_do_not_conflict(
    db, test_mentor, student_principal, future_session_time
):
    _book(db, student_principal, test_mentor.id, future_session_time, 60)
    service = AvailabilityService(db)

    after = service.check_availability(
        test_mentor.id, future_session_time + timedelta(minutes=60), 30
    )
    before = service.check_availability(
        test_mentor.id, future_session_time - timedelta(minutes=30), 30
    )

    assert after.available is True
    assert before.available is True


def test_partial_overlap_conflicts(db, test_mentor, student_principal, future_session_time):
    existing = _book(db, student_principal, test_mentor.id, future_session_time, 60)

    result = AvailabilityService(db).check_availability(
        test_mentor.id, future_session_time + timedelta(minutes=59), 30
    )

    assert result.available is False
    assert [b.id for b in result.conflicts] == [existing.id]


def test_cancelled_bookings_free_the_slot(
    db, test_mentor, student_principal, future_session_time
):
    booking = _book(db, student_principal, test_mentor.id, future_session_time, 60)
    BookingService(db).cancel_booking(student_principal, booking.id)

    result = AvailabilityService(db).check_availability(test_mentor.id, future_session_time, 60)

    assert result.available is True


def test_other_mentors_bookings_are_ignored(
    db, test_mentor, other_mentor, student_principal, future_session_time
):
    _book(db, student_principal, other_mentor.id, future_session_time, 60)

    result = AvailabilityService(db).check_availability(test_mentor.id, future_session_time, 60)

    assert result.available is True


def test_naive_start_is_treated_as_utc(db, test_mentor, future_session_time):
    naive = future_session_time.replace(tzinfo=None)

    result = AvailabilityService(db).check_availability(test_mentor.id, naive, 45)

    assert result.start == future_session_time


@pytest.mark.parametrize("duration", [0, -15, None, 10_000])
def test_invalid_duration_rejected(db, test_mentor, future_session_time, duration):
    with pytest.raises(ValidationException):
        AvailabilityService(db).check_availability(test_mentor.id, future_session_time, duration)


def test_past_start_rejected(db, test_mentor):
    past = datetime.now(timezone.utc) - timedelta(hours=1)

    with pytest.raises(ValidationException) as exc_info:
        AvailabilityService(db).check_availability(test_mentor.id, past, 60)

    assert exc_info.value.details["field"] == "session_time"


def test_unknown_mentor_not_found(db, future_session_time):
    with pytest.raises(NotFoundException):
        AvailabilityService(db).check_availability("01HZZZZZZZZZZZZZZZZZZZZZZZ", future_session_time, 60)
