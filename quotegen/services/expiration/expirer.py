# --------------------------- quotegen/services/expiration/expirer.py ----------------------------
"""
QuoteGen · Quote Expiration Engine

OVERVIEW:
Finds quotes that passed their expiry date while still waiting on the
customer and moves them to EXPIRED, leaving a status history row and an
activity log entry behind for each one.

WORKFLOW:
1. Query SENT/VIEWED quotes with expires_at before now
2. For each quote: update status, append history, append activity
3. Count successes, collect one error string per failure

FAILURE POLICY:
- Fetch failure: nothing is attempted, the error is reported
- Per-quote write failure: reported, the batch continues
- Anything unexpected: reported as a single error, never raised
- No retries here; the next scheduled run picks up what is left
"""

import logging
from datetime import datetime
from typing import Optional

from quotegen.services.expiration.models import (
    ActivityRecord,
    ExpirationError,
    ExpirationResult,
    Quote,
    QuoteStoreError,
    StatusHistoryRecord,
    utc_now,
)
from quotegen.services.expiration.store import QuoteStore
from quotegen.services.quote_status import QuoteStatus, activity_type_for_status

logger = logging.getLogger(__name__)

EXPIRED_COMMENT = "Quote automatically expired"


async def check_and_expire_quotes(store: QuoteStore, now: Optional[datetime] = None) -> ExpirationResult:
    """
    Expire every pending-response quote whose expiry date has passed.

    ARGS:
        store: Quote store to scan and update
        now: Reference time, defaults to the current UTC time

    RETURNS:
        ExpirationResult with the number of quotes expired and any errors
    """
    result = ExpirationResult()

    try:
        now = now or utc_now()

        try:
            expired_quotes = await store.find_quotes_past_expiry(now)
        except QuoteStoreError as e:
            logger.error(f"Error fetching expired quotes: {e}")
            result.add_error(ExpirationError(kind="fetch", message=str(e)))
            return result

        if not expired_quotes:
            logger.info("No expired quotes found")
            return result

        logger.info(f"Found {len(expired_quotes)} expired quotes")

        for quote in expired_quotes:
            try:
                await _expire_quote(store, quote, now)
                result.expired += 1
            except Exception as e:
                logger.error(f"Failed to expire quote {quote.id}: {e}")
                result.add_error(ExpirationError(
                    kind="write", message=str(e) or type(e).__name__,
                    quote_id=quote.id, quote_number=quote.quote_number,
                ))

        return result

    except Exception as e:
        logger.exception("Unexpected error in check_and_expire_quotes")
        result.add_error(ExpirationError(kind="unexpected", message=str(e) or type(e).__name__))
        return result


async def _expire_quote(store: QuoteStore, quote: Quote, now: datetime):
    """Move one quote to EXPIRED and record the transition."""
    previous_status = quote.status

    await store.update_quote_status(quote.id, QuoteStatus.EXPIRED, now)

    await store.append_status_history(StatusHistoryRecord(
        quote_id=quote.id,
        from_status=previous_status,
        to_status=QuoteStatus.EXPIRED,
        changed_at=now,
        comment=EXPIRED_COMMENT,
        metadata={"reason": "expired", "auto": True},
    ))

    await store.append_activity(ActivityRecord(
        type=activity_type_for_status(QuoteStatus.EXPIRED),
        quote_id=quote.id,
        quote_number=quote.quote_number,
        description=EXPIRED_COMMENT,
        created_at=now,
        metadata={"from_status": previous_status.value},
    ))

    logger.info(f"Quote {quote.quote_number} has been marked as expired")
