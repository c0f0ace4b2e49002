"""Outbox event handlers for booking side effects."""

from app.events.handlers import EVENT_HANDLERS, UnknownEventType, process_event

__all__ = [
    "EVENT_HANDLERS",
    "UnknownEventType",
    "process_event",
]
