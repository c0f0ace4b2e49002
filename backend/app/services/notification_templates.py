from __future__ import annotations

from dataclasses import dataclass

from .template_registry import TemplateRegistry


@dataclass(frozen=True)
class NotificationTemplate:
    type: str
    email_template: TemplateRegistry
    email_subject_template: str

    def subject(self, **context: object) -> str:
        return self.email_subject_template.format(**context)


# Mentor templates
MENTOR_BOOKING_REQUESTED = NotificationTemplate(
    type="booking_requested",
    email_template=TemplateRegistry.BOOKING_REQUEST_MENTOR,
    email_subject_template="New session request from {student_name}",
)

# Student templates
STUDENT_BOOKING_CONFIRMED = NotificationTemplate(
    type="booking_confirmed",
    email_template=TemplateRegistry.BOOKING_CONFIRMATION_STUDENT,
    email_subject_template="Session confirmed: {session_type} with {mentor_name}",
)

STUDENT_REVIEW_REQUEST = NotificationTemplate(
    type="review_request",
    email_template=TemplateRegistry.BOOKING_REVIEW_REQUEST,
    email_subject_template="How was your session with {mentor_name}?",
)

# Either party
BOOKING_CANCELLED = NotificationTemplate(
    type="booking_cancelled",
    email_template=TemplateRegistry.BOOKING_CANCELLATION,
    email_subject_template="Session cancelled: {session_type}",
)

BOOKING_REMINDER_24H = NotificationTemplate(
    type="booking_reminder_24h",
    email_template=TemplateRegistry.BOOKING_REMINDER,
    email_subject_template="Reminder: {session_type} session tomorrow",
)

BOOKING_REMINDER_1H = NotificationTemplate(
    type="booking_reminder_1h",
    email_template=TemplateRegistry.BOOKING_REMINDER,
    email_subject_template="Reminder: {session_type} session in 1 hour",
)

REMINDER_TEMPLATES = {
    "24h": BOOKING_REMINDER_24H,
    "1h": BOOKING_REMINDER_1H,
}
