"""Quote Expiration Services Module"""
from .models import (
    DuplicateReminderError,
    ExpirationResult,
    ExpirationSummary,
    NotificationError,
    Quote,
    QuoteStoreError,
    ReminderConfig,
    ReminderResult,
)
from .store import QuoteStore, SupabaseQuoteStore, InMemoryQuoteStore
from .notifier import Notifier, ResendNotifier
from .expirer import check_and_expire_quotes
from .reminders import send_expiration_reminders
from .processor import process_quote_expirations, run_scheduled_expirations

__all__ = [
    "check_and_expire_quotes", "send_expiration_reminders", "process_quote_expirations",
    "run_scheduled_expirations", "Quote", "ReminderConfig", "ExpirationResult", "ReminderResult",
    "ExpirationSummary", "QuoteStore", "SupabaseQuoteStore", "InMemoryQuoteStore", "Notifier",
    "ResendNotifier", "QuoteStoreError", "DuplicateReminderError", "NotificationError",
]
