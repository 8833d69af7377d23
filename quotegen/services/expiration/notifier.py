# --------------------------- quotegen/services/expiration/notifier.py ----------------------------
"""
QuoteGen · Reminder Notifier

OVERVIEW:
Delivery boundary for expiration reminders. The reminder engine hands a
quote, the threshold that matched, and the run's ReminderConfig to a
Notifier; ResendNotifier renders the templates and sends through Resend.

DEPENDENCIES:
- Resend API for email
- Jinja2 templates in templates.py
"""

import os
import logging
from abc import ABC, abstractmethod
from typing import Optional

import resend

from quotegen.services.expiration.models import NotificationError, Quote, ReminderConfig
from quotegen.services.expiration.templates import render_reminder

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Sends reminder emails for quotes that are about to expire."""

    @abstractmethod
    async def send_reminder_email(self, to_address: str, quote: Quote, threshold_days: int,
                                  config: ReminderConfig,
                                  days_until_expiry: Optional[int] = None) -> Optional[str]:
        """
        Send one reminder; returns the provider message id when there is one.

        threshold_days is the reminder bucket that matched. days_until_expiry is
        the time actually left on the quote and is what the customer is told;
        it falls back to threshold_days when not given.
        """


class ResendNotifier(Notifier):
    """Notifier that delivers through the Resend email API."""

    def __init__(self, api_key: Optional[str] = None):
        self.resend_api_key = api_key or os.getenv("RESEND_API_KEY")
        if self.resend_api_key:
            resend.api_key = self.resend_api_key

    async def send_reminder_email(self, to_address: str, quote: Quote, threshold_days: int,
                                  config: ReminderConfig,
                                  days_until_expiry: Optional[int] = None) -> Optional[str]:
        if not self.resend_api_key:
            raise NotificationError("Email service not configured")

        content = render_reminder(
            quote_number=quote.quote_number,
            days_until_expiry=days_until_expiry or threshold_days,
            company_name=config.company_name,
            quote_title=quote.title,
            customer_name=quote.customer_name,
            total=quote.total,
        )

        try:
            response = resend.Emails.send({
                "from": f"{config.company_name} <{config.from_email}>",
                "to": to_address,
                "subject": content["subject"],
                "html": content["html"],
                "text": content["text"],
                "headers": {"X-Quote-ID": quote.id},
            })
        except Exception as e:
            raise NotificationError(f"Failed to send reminder email: {e}") from e

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.info(f"Reminder sent for quote {quote.quote_number} ({threshold_days} day reminder): {message_id}")
        return message_id
