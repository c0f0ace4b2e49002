# backend/app/services/notification_service.py
"""
Notification Service for the MatePeak platform.

Renders booking emails from Jinja2 templates and sends them through
EmailService. Only the outbox event handlers and the reminder job call this
service; request handlers never send email inline.

Provider errors propagate so the outbox dispatcher can schedule a retry.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.timezone_utils import format_session_time_for_user
from ..models.booking import Booking
from ..models.user import User
from .base import BaseService
from .email import EmailService
from .notification_templates import (
    BOOKING_CANCELLED,
    MENTOR_BOOKING_REQUESTED,
    REMINDER_TEMPLATES,
    STUDENT_BOOKING_CONFIRMED,
    STUDENT_REVIEW_REQUEST,
    NotificationTemplate,
)
from .template_service import TemplateService

logger = logging.getLogger(__name__)

REMINDER_TIME_UNTIL = {"24h": "tomorrow", "1h": "in 1 hour"}


def _display_name(user: Optional[User]) -> str:
    if user is None:
        return "Someone"
    return user.full_name or user.email


class NotificationService(BaseService):
    """
    Sends booking lifecycle emails.

    Each ``send_*`` method returns the number of emails sent.
    """

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        template_service: Optional[TemplateService] = None,
    ):
        super().__init__(db)
        self._email_service = email_service
        self.template_service = template_service or TemplateService()

    @property
    def email_service(self) -> EmailService:
        # Built on first use so a missing Resend key only fails actual sends
        if self._email_service is None:
            self._email_service = EmailService()
        return self._email_service

    def _booking_context(self, booking: Booking, recipient: User) -> Dict[str, Any]:
        return {
            "recipient_name": _display_name(recipient),
            "student_name": _display_name(booking.student),
            "mentor_name": _display_name(booking.mentor),
            "session_type": booking.session_type,
            "session_time": format_session_time_for_user(booking.session_time, recipient),
            "duration": booking.duration,
            "total_amount": booking.total_amount,
            "meeting_link": booking.meeting_link,
        }

    def _send(
        self,
        template: NotificationTemplate,
        recipient: Optional[User],
        context: Dict[str, Any],
    ) -> int:
        if recipient is None or not recipient.email:
            logger.warning(f"Skipping {template.type} email: recipient has no address")
            return 0
        html = self.template_service.render_template(template.email_template, context)
        self.email_service.send_email(
            to_email=recipient.email,
            subject=template.subject(**context),
            html_content=html,
        )
        self.log_operation("notification_sent", type=template.type, recipient_id=recipient.id)
        return 1

    @BaseService.measure_operation("send_booking_requested")
    def send_booking_requested(self, booking: Booking) -> int:
        """Tell the mentor a student requested a session."""
        context = self._booking_context(booking, booking.mentor)
        context["message"] = booking.message
        return self._send(MENTOR_BOOKING_REQUESTED, booking.mentor, context)

    @BaseService.measure_operation("send_booking_confirmed")
    def send_booking_confirmed(self, booking: Booking) -> int:
        """Tell the student the mentor confirmed, with the meeting link."""
        return self._send(
            STUDENT_BOOKING_CONFIRMED,
            booking.student,
            self._booking_context(booking, booking.student),
        )

    @BaseService.measure_operation("send_booking_cancelled")
    def send_booking_cancelled(self, booking: Booking) -> int:
        """Tell the participant who did not cancel."""
        if booking.cancelled_by_id == booking.mentor_id:
            canceller, recipient = booking.mentor, booking.student
        else:
            canceller, recipient = booking.student, booking.mentor
        context = self._booking_context(booking, recipient)
        context["cancelled_by_name"] = _display_name(canceller)
        context["refunded"] = booking.payment_status == "refunded"
        return self._send(BOOKING_CANCELLED, recipient, context)

    @BaseService.measure_operation("send_booking_reminder")
    def send_booking_reminder(self, booking: Booking, kind: str) -> int:
        """Remind both participants of an upcoming session (``kind`` is ``24h`` or ``1h``)."""
        template = REMINDER_TEMPLATES[kind]
        sent = 0
        for recipient, other in ((booking.student, booking.mentor), (booking.mentor, booking.student)):
            context = self._booking_context(booking, recipient)
            context["other_party_name"] = _display_name(other)
            context["time_until"] = REMINDER_TIME_UNTIL[kind]
            sent += self._send(template, recipient, context)
        return sent

    @BaseService.measure_operation("send_review_request")
    def send_review_request(self, booking: Booking) -> int:
        """Ask the student to review the mentor after a completed session."""
        context = self._booking_context(booking, booking.student)
        profile = booking.mentor.mentor_profile if booking.mentor is not None else None
        context["mentor_username"] = profile.username if profile is not None else booking.mentor_id
        return self._send(STUDENT_REVIEW_REQUEST, booking.student, context)
