"""
QuoteGen Configuration Settings

This module contains the configuration settings for quote expiration
processing. Settings can be overridden by environment variables.
"""

import os
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

# Defaults
DEFAULT_REMINDER_DAYS: Tuple[int, ...] = (7, 3, 1)
DEFAULT_FROM_EMAIL = "quotes@quotegen.app"
DEFAULT_COMPANY_NAME = "QuoteGen"

# Supabase Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
FROM_EMAIL = os.getenv("FROM_EMAIL", DEFAULT_FROM_EMAIL)
COMPANY_NAME = os.getenv("COMPANY_NAME", DEFAULT_COMPANY_NAME)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_reminder_days(value: Optional[str]) -> Tuple[int, ...]:
    """Parse a comma separated list such as "7,3,1"."""
    if not value or not value.strip():
        return DEFAULT_REMINDER_DAYS
    try:
        days = tuple(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        days = ()
    if not days or any(day <= 0 for day in days):
        raise ValueError(
            f"REMINDER_DAYS must be a comma separated list of positive integers, got {value!r}"
        )
    return days


def load_reminder_config() -> "ReminderConfig":
    """
    Build the reminder configuration for one run from the environment.

    Read on every call so a long-lived worker picks up changed settings
    on its next tick. Raises ValueError for a malformed REMINDER_DAYS.
    """
    from quotegen.services.expiration.models import ReminderConfig

    enabled = os.getenv("REMINDERS_ENABLED", "true").strip().lower() not in _FALSE_VALUES
    return ReminderConfig(
        enabled=enabled,
        reminder_days=parse_reminder_days(os.getenv("REMINDER_DAYS")),
        from_email=os.getenv("FROM_EMAIL", DEFAULT_FROM_EMAIL),
        company_name=os.getenv("COMPANY_NAME", DEFAULT_COMPANY_NAME),
    )
