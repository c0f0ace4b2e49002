"""
Template registry for strongly-typed access to Jinja templates.

Use with TemplateService to avoid stringly-typed paths.
"""

from enum import Enum


class TemplateRegistry(str, Enum):
    # Booking notifications
    BOOKING_REQUEST_MENTOR = "email/booking/request_mentor.html"
    BOOKING_CONFIRMATION_STUDENT = "email/booking/confirmation_student.html"
    BOOKING_CANCELLATION = "email/booking/cancellation.html"
    BOOKING_REMINDER = "email/booking/reminder.html"
    BOOKING_REVIEW_REQUEST = "email/booking/review_request.html"
