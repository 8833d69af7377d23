# --------------------------- quotegen/services/expiration/processor.py ----------------------------
"""
QuoteGen · Scheduled Expiration Processing

OVERVIEW:
Single entry point for the periodic expiration job. Runs the expiration
engine, then the reminder engine, and merges both into one summary.

INTEGRATION POINT:
Called by a cron trigger or serverless timer, typically hourly. The job
keeps no state between invocations; the store is the only memory.

USAGE:
    python -m quotegen.services.expiration.processor
    python -m quotegen.services.expiration.processor --no-reminders
    python -m quotegen.services.expiration.processor --reminder-days 7,3,1
"""

import sys
import json
import time
import asyncio
import logging
import argparse
from datetime import datetime
from typing import Any, Dict, Optional

from quotegen.config import settings
from quotegen.services.expiration.expirer import check_and_expire_quotes
from quotegen.services.expiration.models import (
    ExpirationError,
    ExpirationResult,
    ExpirationSummary,
    ReminderConfig,
    ReminderResult,
    utc_now,
)
from quotegen.services.expiration.notifier import Notifier, ResendNotifier
from quotegen.services.expiration.reminders import send_expiration_reminders
from quotegen.services.expiration.store import QuoteStore, SupabaseQuoteStore

logger = logging.getLogger(__name__)


async def process_quote_expirations(store: QuoteStore, notifier: Notifier,
                                    config: Optional[ReminderConfig] = None,
                                    now: Optional[datetime] = None) -> ExpirationSummary:
    """
    Run all expiration-related tasks.

    Reminders run even when the expiration phase reported errors. Both
    engines return their failures instead of raising; if one raises
    anyway, the exception is recorded and the summary so far is returned.
    """
    config = config or ReminderConfig()
    logger.info("Starting quote expiration processing...")
    start_time = time.monotonic()

    expire_result = ExpirationResult()
    reminder_result = ReminderResult()

    try:
        expire_result = await check_and_expire_quotes(store, now=now)
        reminder_result = await send_expiration_reminders(store, notifier, config, now=now)
        summary = ExpirationSummary.merge(expire_result, reminder_result)
    except Exception as e:
        logger.exception("Unexpected error in process_quote_expirations")
        summary = ExpirationSummary.merge(expire_result, reminder_result)
        summary.errors.append(str(ExpirationError(kind="unexpected", message=str(e) or type(e).__name__)))

    duration_ms = int((time.monotonic() - start_time) * 1000)
    logger.info(f"Quote expiration processing complete in {duration_ms}ms: {summary.to_dict()}")

    if summary.errors:
        logger.warning(f"Quote expiration processing reported {len(summary.errors)} errors")

    return summary


async def run_scheduled_expirations(enabled: Optional[bool] = None,
                                    store: Optional[QuoteStore] = None,
                                    notifier: Optional[Notifier] = None,
                                    config: Optional[ReminderConfig] = None) -> Dict[str, Any]:
    """
    Scheduler-facing wrapper returning a JSON-ready response.

    ARGS:
        enabled: When given, overrides the reminder switch from the environment
        store, notifier, config: Collaborators; built from settings when omitted

    RETURNS:
        {"success": True, "data": {...summary...}, "timestamp": ...} or
        {"success": False, "error": ..., "timestamp": ...}
    """
    try:
        config = config or settings.load_reminder_config()
        if enabled is not None:
            config = config.with_overrides(enabled=enabled)
        store = store or SupabaseQuoteStore.from_settings(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        notifier = notifier or ResendNotifier(settings.RESEND_API_KEY)

        summary = await process_quote_expirations(store, notifier, config)
        return {
            "success": True,
            "data": summary.to_dict(),
            "timestamp": utc_now().isoformat(),
        }
    except Exception as e:
        logger.error(f"Error in expiration processing: {e}")
        return {
            "success": False,
            "error": str(e),
            "timestamp": utc_now().isoformat(),
        }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expire overdue quotes and send expiration reminders")
    parser.add_argument("--no-reminders", action="store_true",
                        help="Only expire quotes; skip reminder emails")
    parser.add_argument("--reminder-days", default=None,
                        help="Comma separated day thresholds, e.g. 7,3,1")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = settings.load_reminder_config()
        if args.reminder_days:
            config = config.with_overrides(reminder_days=settings.parse_reminder_days(args.reminder_days))
    except ValueError as e:
        parser.error(str(e))

    response = asyncio.run(run_scheduled_expirations(
        enabled=False if args.no_reminders else None,
        config=config,
    ))
    print(json.dumps(response, indent=2))

    if not response["success"] or response["data"]["errors"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
