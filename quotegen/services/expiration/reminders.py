# --------------------------- quotegen/services/expiration/reminders.py ----------------------------
"""
QuoteGen · Expiration Reminder Engine

OVERVIEW:
Emails customers whose quotes are about to expire, once per configured
day threshold. Each threshold is an independent scan, so a quote expiring
tomorrow is a candidate for the 7, 3 and 1 day reminders alike.

WORKFLOW (per threshold, per candidate quote):
1. Skip if a reminder marker already exists for (quote, threshold)
2. Skip if the quote has no customer email (not an error)
3. Claim the marker, then send; a failed send releases the claim

BUSINESS LOGIC:
- quote_reminders has a unique (quote_id, days_before_expiry) constraint
- Claiming before sending turns an overlapping run into a failed insert
  instead of a second email to the customer
- expiring_soon counts candidates per threshold, not distinct quotes
"""

import logging
from datetime import datetime
from typing import Optional

from quotegen.services.expiration.models import (
    DuplicateReminderError,
    ExpirationError,
    Quote,
    ReminderConfig,
    ReminderResult,
    utc_now,
)
from quotegen.services.expiration.notifier import Notifier
from quotegen.services.expiration.store import QuoteStore

logger = logging.getLogger(__name__)


async def send_expiration_reminders(store: QuoteStore, notifier: Notifier,
                                    config: Optional[ReminderConfig] = None,
                                    now: Optional[datetime] = None) -> ReminderResult:
    """
    Send reminder emails for quotes expiring within each configured threshold.

    ARGS:
        store: Quote store holding quotes and reminder markers
        notifier: Delivery channel for the reminder emails
        config: Reminder settings for this run, defaults to ReminderConfig()
        now: Reference time, defaults to the current UTC time

    RETURNS:
        ReminderResult with candidate count, reminders sent and errors
    """
    config = config or ReminderConfig()
    result = ReminderResult()

    if not config.enabled:
        logger.info("Expiration reminders are disabled")
        return result

    try:
        now = now or utc_now()

        for days in config.reminder_days:
            try:
                expiring_quotes = await store.find_quotes_expiring_within(now, days)
            except Exception as e:
                logger.error(f"Error fetching quotes expiring in {days} days: {e}")
                result.add_error(ExpirationError(
                    kind="fetch", message=str(e) or type(e).__name__, threshold_days=days
                ))
                continue

            if not expiring_quotes:
                continue

            result.expiring_soon += len(expiring_quotes)

            for quote in expiring_quotes:
                if await _remind(store, notifier, config, quote, days, now, result):
                    result.reminders_sent += 1

        return result

    except Exception as e:
        logger.exception("Unexpected error in send_expiration_reminders")
        result.add_error(ExpirationError(kind="unexpected", message=str(e) or type(e).__name__))
        return result


async def _remind(store: QuoteStore, notifier: Notifier, config: ReminderConfig,
                  quote: Quote, days: int, now: datetime, result: ReminderResult) -> bool:
    """Process one (quote, threshold) pair; True when an email went out."""
    try:
        if await store.has_reminder_marker(quote.id, days):
            logger.info(f"Reminder already sent for quote {quote.quote_number} at {days} days")
            return False
    except Exception as e:
        logger.error(f"Failed to check reminder status for quote {quote.id}: {e}")
        result.add_error(_quote_error("write", e, quote, days))
        return False

    if not quote.customer_email:
        logger.warning(f"No customer email for quote {quote.quote_number}")
        return False

    try:
        await store.insert_reminder_marker(quote.id, days, now)
    except DuplicateReminderError:
        logger.info(f"Reminder for quote {quote.quote_number} at {days} days claimed by another run")
        return False
    except Exception as e:
        logger.error(f"Failed to record reminder for quote {quote.id}: {e}")
        result.add_error(_quote_error("write", e, quote, days))
        return False

    days_left = max(1, quote.days_until_expiry(now))

    try:
        await notifier.send_reminder_email(quote.customer_email, quote, days, config,
                                           days_until_expiry=days_left)
    except Exception as e:
        logger.error(f"Failed to send reminder for quote {quote.id}: {e}")
        result.add_error(_quote_error("send", e, quote, days))
        await _release_marker(store, quote, days, result)
        return False

    return True


async def _release_marker(store: QuoteStore, quote: Quote, days: int, result: ReminderResult):
    try:
        await store.delete_reminder_marker(quote.id, days)
    except Exception as e:
        # Marker stays; this threshold will not be retried for the quote
        logger.error(f"Failed to release reminder marker for quote {quote.id}: {e}")
        result.add_error(_quote_error("write", e, quote, days))


def _quote_error(kind: str, error: Exception, quote: Quote, days: int) -> ExpirationError:
    return ExpirationError(
        kind=kind,
        message=str(error) or type(error).__name__,
        quote_id=quote.id,
        quote_number=quote.quote_number,
        threshold_days=days,
    )
