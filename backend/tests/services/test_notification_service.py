"""Booking emails: recipients, subjects and rendered content."""

from unittest.mock import Mock, patch

import pytest
import requests

from app.core.exceptions import (
    ProviderException,
    ProviderNotConfiguredException,
    ProviderTimeoutException,
)
from app.services.booking_service import BookingService
from app.services.email import EmailService
from app.services.notification_service import NotificationService


@pytest.fixture
def email_service():
    service = Mock(spec=EmailService)
    service.send_email.return_value = {"id": "test-email-id"}
    return service


@pytest.fixture
def notification_service(db, email_service):
    return NotificationService(db, email_service=email_service)


@pytest.fixture
def confirmed_booking(db, student_principal, mentor_principal, test_mentor, future_session_time):
    service = BookingService(db)
    booking = service.create_booking(
        student_principal,
        mentor_id=test_mentor.id,
        session_time=future_session_time,
        duration=60,
        session_type="Resume review",
        message="Please look at my projects section",
    )
    return service.confirm_booking(mentor_principal, booking.id)


def _sent_to(email_service):
    return [c.kwargs["to_email"] for c in email_service.send_email.call_args_list]


def test_request_goes_to_mentor_with_message(
    notification_service, email_service, confirmed_booking, test_mentor
):
    assert notification_service.send_booking_requested(confirmed_booking) == 1

    call = email_service.send_email.call_args
    assert call.kwargs["to_email"] == test_mentor.email
    assert call.kwargs["subject"] == "New session request from Asha Student"
    assert "Please look at my projects section" in call.kwargs["html_content"]
    assert "₹500.00" in call.kwargs["html_content"]


def test_confirmation_includes_meeting_link(
    notification_service, email_service, confirmed_booking, test_student
):
    notification_service.send_booking_confirmed(confirmed_booking)

    call = email_service.send_email.call_args
    assert call.kwargs["to_email"] == test_student.email
    assert confirmed_booking.meeting_link in call.kwargs["html_content"]


def test_cancellation_notifies_the_other_party(
    db, notification_service, email_service, confirmed_booking, student_principal, test_mentor
):
    cancelled = BookingService(db).cancel_booking(student_principal, confirmed_booking.id)

    notification_service.send_booking_cancelled(cancelled)

    assert _sent_to(email_service) == [test_mentor.email]


def test_reminder_goes_to_both_participants(
    notification_service, email_service, confirmed_booking, test_student, test_mentor
):
    assert notification_service.send_booking_reminder(confirmed_booking, "1h") == 2

    assert _sent_to(email_service) == [test_student.email, test_mentor.email]
    subjects = {c.kwargs["subject"] for c in email_service.send_email.call_args_list}
    assert subjects == {"Reminder: Resume review session in 1 hour"}


def test_review_request_links_mentor_profile(
    notification_service, email_service, confirmed_booking
):
    notification_service.send_review_request(confirmed_booking)

    assert "meera" in email_service.send_email.call_args.kwargs["html_content"]


def test_provider_errors_propagate(notification_service, email_service, confirmed_booking):
    email_service.send_email.side_effect = ProviderException("Email sending failed")

    with pytest.raises(ProviderException):
        notification_service.send_booking_confirmed(confirmed_booking)


class TestEmailService:
    def test_console_provider_does_not_call_resend(self):
        with patch("resend.Emails.send") as send:
            result = EmailService(provider="console").send_email(
                "a@example.com", "Hi", "<p>Hello</p>"
            )

        send.assert_not_called()
        assert result == {"id": "console"}

    def test_resend_without_key_is_configuration_error(self, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "resend_api_key", None)

        with pytest.raises(ProviderNotConfiguredException):
            EmailService(provider="resend")

    def test_resend_timeout(self, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        with patch("resend.Emails.send", side_effect=requests.exceptions.ReadTimeout("slow")):
            with pytest.raises(ProviderTimeoutException):
                EmailService(provider="resend").send_email("a@example.com", "Hi", "<p>Hello</p>")

    def test_resend_success(self, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "resend_api_key", "re_test")
        with patch("resend.Emails.send", return_value={"id": "email_123"}) as send:
            result = EmailService(provider="resend").send_email(
                "a@example.com", "Hi", "<p>Hello <b>there</b></p>"
            )

        assert result == {"id": "email_123"}
        assert send.call_args.args[0]["text"] == "Hello there"
