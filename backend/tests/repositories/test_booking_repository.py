from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.enums import BookingStatus
from app.core.exceptions import RepositoryException
from app.models.booking import Booking
from app.repositories.base_repository import BaseRepository
from app.repositories.booking_repository import BookingRepository


def _booking_payload(student, mentor, start, duration: int = 30) -> dict:
    return {
        "student_id": student.id,
        "mentor_id": mentor.id,
        "session_time": start,
        "end_time": start + timedelta(minutes=duration),
        "duration": duration,
        "session_type": "Resume review",
    }


class TestBookingRepositoryCreate:
    def test_create_flushes_and_assigns_id(self, db, test_student, test_mentor, future_session_time):
        repo = BookingRepository(db)

        booking = repo.create(**_booking_payload(test_student, test_mentor, future_session_time))

        assert booking.id
        assert booking.status == BookingStatus.PENDING.value
        assert repo.get_by_id(booking.id) is booking
        assert repo.count(mentor_id=test_mentor.id) == 1

    def test_integrity_error_propagates(self, db, test_student, test_mentor, future_session_time):
        repo = BookingRepository(db)
        payload = _booking_payload(test_student, test_mentor, future_session_time)
        payload["end_time"] = future_session_time - timedelta(minutes=5)

        with pytest.raises(IntegrityError):
            repo.create(**payload)
        db.rollback()

    def test_other_database_errors_are_wrapped(self):
        session = MagicMock()
        session.flush.side_effect = SQLAlchemyError("connection reset")
        repo = BaseRepository(session, Booking)

        with pytest.raises(RepositoryException):
            repo.create(session_type="Resume review", duration=30)
