"""Application-wide constants for the MatePeak platform."""

from __future__ import annotations

import os

BRAND_NAME = "MatePeak"
DEFAULT_FROM_EMAIL = "MatePeak - Be a Solopreneur <onboarding@resend.dev>"

# Session duration constraints
MIN_SESSION_DURATION = 15  # minutes
MAX_SESSION_DURATION = 480  # minutes (8 hours)

# Text constraints
MAX_SESSION_TYPE_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000
MAX_SEARCH_QUERY_LENGTH = 500

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500

# Reminder windows (minutes before session start)
REMINDER_24H_WINDOW = (60, 24 * 60)
REMINDER_1H_WINDOW = (30, 60)

# Frontend URLs
DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def _split_env(name: str) -> list[str]:
    value = os.getenv(name, "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


ALLOWED_ORIGINS = _split_env("ALLOWED_ORIGINS") or DEFAULT_DEV_ORIGINS

# API metadata
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = f"Backend API for {BRAND_NAME} - A platform connecting students with mentors"
API_VERSION = "1.0.0"
