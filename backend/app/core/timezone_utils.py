"""
Timezone utilities for the MatePeak platform.

All persisted timestamps are UTC. SQLite hands back naive datetimes, so
values read from the store are normalised with ``ensure_utc`` before they
are compared against aware ones.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytz

if TYPE_CHECKING:
    from app.models.user import User


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are assumed UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def get_user_timezone(user: "User") -> pytz.BaseTzInfo:
    """
    Get user's timezone preference.

    Unknown zone names fall back to UTC rather than failing a notification.
    """
    try:
        return pytz.timezone(user.timezone or "UTC")
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def convert_to_user_timezone(dt: datetime, user: "User") -> datetime:
    """Convert a UTC datetime to the user's timezone."""
    return ensure_utc(dt).astimezone(get_user_timezone(user))


def format_session_time_for_user(dt: datetime, user: "User") -> str:
    """Human readable session time in the recipient's zone, e.g. ``Mon, 03 Mar 2025 10:00 IST``."""
    local = convert_to_user_timezone(dt, user)
    return local.strftime("%a, %d %b %Y %H:%M %Z")
