# --------------------------- quotegen/services/expiration/store.py ----------------------------
"""
QuoteGen · Quote Store

OVERVIEW:
Persistence boundary for expiration processing. The engines only see the
QuoteStore interface; SupabaseQuoteStore binds it to the production
database and InMemoryQuoteStore backs tests and local dry runs.

TABLES:
- quotes: quote rows (status, expires_at, customer contact)
- quote_status_history: append-only status transitions
- activities: general audit log
- quote_reminders: one row per (quote_id, days_before_expiry), unique

ERROR CONTRACT:
Every failure is raised as QuoteStoreError. A unique-constraint violation
on quote_reminders is raised as DuplicateReminderError so the reminder
engine can tell a lost race from a broken database.
"""

import os
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client, create_client

from quotegen.services.expiration.models import (
    ActivityRecord,
    DuplicateReminderError,
    Quote,
    QuoteStoreError,
    StatusHistoryRecord,
)
from quotegen.services.quote_status import PENDING_RESPONSE_STATUSES, QuoteStatus, is_pending_response

logger = logging.getLogger(__name__)

QUOTE_COLUMNS = "id, quote_number, customer_email, customer_name, expires_at, title, total, status"
UNIQUE_VIOLATION = "23505"

_PENDING_VALUES = sorted(status.value for status in PENDING_RESPONSE_STATUSES)


class QuoteStore(ABC):
    """Read/write access to quotes and their expiration bookkeeping."""

    @abstractmethod
    async def find_quotes_past_expiry(self, now: datetime) -> List[Quote]:
        """Pending-response quotes with expires_at strictly before now, oldest first."""

    @abstractmethod
    async def find_quotes_expiring_within(self, now: datetime, days: int) -> List[Quote]:
        """Pending-response quotes with expires_at in [now, now + days]."""

    @abstractmethod
    async def update_quote_status(self, quote_id: str, new_status: QuoteStatus,
                                  updated_at: datetime) -> None:
        ...

    @abstractmethod
    async def append_status_history(self, record: StatusHistoryRecord) -> None:
        ...

    @abstractmethod
    async def append_activity(self, record: ActivityRecord) -> None:
        ...

    @abstractmethod
    async def has_reminder_marker(self, quote_id: str, days: int) -> bool:
        ...

    @abstractmethod
    async def insert_reminder_marker(self, quote_id: str, days: int, sent_at: datetime) -> None:
        """Record a reminder; raises DuplicateReminderError if one exists."""

    @abstractmethod
    async def delete_reminder_marker(self, quote_id: str, days: int) -> None:
        ...


# ===============================================================================
# SUPABASE
# ===============================================================================

class SupabaseQuoteStore(QuoteStore):
    """
    QuoteStore backed by the Supabase (PostgREST) client.

    Status updates are conditional on the quote still being in a
    pending-response status, so a quote accepted between the scan and the
    write is left alone and reported as a failed write.
    """

    def __init__(self, client: Client):
        self.supabase = client

    @classmethod
    def from_settings(cls, url: Optional[str] = None, key: Optional[str] = None) -> "SupabaseQuoteStore":
        url = url or os.getenv("SUPABASE_URL")
        key = key or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return cls(create_client(url, key))

    async def find_quotes_past_expiry(self, now: datetime) -> List[Quote]:
        try:
            response = (
                self.supabase.table("quotes")
                .select(QUOTE_COLUMNS)
                .lt("expires_at", now.isoformat())
                .in_("status", _PENDING_VALUES)
                .order("expires_at")
                .execute()
            )
        except APIError as e:
            raise _store_error(e) from e
        return [Quote.from_row(row) for row in response.data or []]

    async def find_quotes_expiring_within(self, now: datetime, days: int) -> List[Quote]:
        window_end = now + timedelta(days=days)
        try:
            response = (
                self.supabase.table("quotes")
                .select(QUOTE_COLUMNS)
                .gte("expires_at", now.isoformat())
                .lte("expires_at", window_end.isoformat())
                .in_("status", _PENDING_VALUES)
                .order("expires_at")
                .execute()
            )
        except APIError as e:
            raise _store_error(e) from e
        return [Quote.from_row(row) for row in response.data or []]

    async def update_quote_status(self, quote_id: str, new_status: QuoteStatus,
                                  updated_at: datetime) -> None:
        try:
            response = (
                self.supabase.table("quotes")
                .update({"status": new_status.value, "updated_at": updated_at.isoformat()})
                .eq("id", quote_id)
                .in_("status", _PENDING_VALUES)
                .execute()
            )
        except APIError as e:
            raise _store_error(e) from e
        if not response.data:
            raise QuoteStoreError(f"Quote {quote_id} is no longer awaiting a response")

    async def append_status_history(self, record: StatusHistoryRecord) -> None:
        try:
            self.supabase.table("quote_status_history").insert(record.to_row()).execute()
        except APIError as e:
            raise _store_error(e) from e

    async def append_activity(self, record: ActivityRecord) -> None:
        try:
            self.supabase.table("activities").insert(record.to_row()).execute()
        except APIError as e:
            raise _store_error(e) from e

    async def has_reminder_marker(self, quote_id: str, days: int) -> bool:
        try:
            response = (
                self.supabase.table("quote_reminders")
                .select("id")
                .eq("quote_id", quote_id)
                .eq("days_before_expiry", days)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise _store_error(e) from e
        return bool(response.data)

    async def insert_reminder_marker(self, quote_id: str, days: int, sent_at: datetime) -> None:
        try:
            self.supabase.table("quote_reminders").insert({
                "quote_id": quote_id,
                "days_before_expiry": days,
                "sent_at": sent_at.isoformat(),
            }).execute()
        except APIError as e:
            raise _store_error(e) from e

    async def delete_reminder_marker(self, quote_id: str, days: int) -> None:
        try:
            (
                self.supabase.table("quote_reminders")
                .delete()
                .eq("quote_id", quote_id)
                .eq("days_before_expiry", days)
                .execute()
            )
        except APIError as e:
            raise _store_error(e) from e


def _store_error(error: APIError) -> QuoteStoreError:
    message = getattr(error, "message", None) or str(error)
    logger.error(f"Quote store request failed: {message}")
    if getattr(error, "code", None) == UNIQUE_VIOLATION:
        return DuplicateReminderError(message)
    return QuoteStoreError(message)


# ===============================================================================
# IN-MEMORY
# ===============================================================================

class InMemoryQuoteStore(QuoteStore):
    """Dict-backed QuoteStore with the same filters and marker uniqueness."""

    def __init__(self, quotes: Optional[List[Quote]] = None):
        self.quotes: Dict[str, Quote] = {}
        self.status_history: List[StatusHistoryRecord] = []
        self.activities: List[ActivityRecord] = []
        self.reminder_markers: Dict[Tuple[str, int], datetime] = {}
        for quote in quotes or []:
            self.add_quote(quote)

    def add_quote(self, quote: Quote):
        self.quotes[quote.id] = quote

    def get_quote(self, quote_id: str) -> Quote:
        return self.quotes[quote_id]

    def _pending(self) -> List[Quote]:
        return [
            q for q in self.quotes.values()
            if is_pending_response(q.status) and q.expires_at is not None
        ]

    async def find_quotes_past_expiry(self, now: datetime) -> List[Quote]:
        matches = [q for q in self._pending() if q.expires_at < now]
        return sorted(matches, key=lambda q: q.expires_at)

    async def find_quotes_expiring_within(self, now: datetime, days: int) -> List[Quote]:
        window_end = now + timedelta(days=days)
        matches = [q for q in self._pending() if now <= q.expires_at <= window_end]
        return sorted(matches, key=lambda q: q.expires_at)

    async def update_quote_status(self, quote_id: str, new_status: QuoteStatus,
                                  updated_at: datetime) -> None:
        quote = self.quotes.get(quote_id)
        if quote is None:
            raise QuoteStoreError(f"Quote {quote_id} not found")
        if not is_pending_response(quote.status):
            raise QuoteStoreError(f"Quote {quote_id} is no longer awaiting a response")
        quote.status = new_status

    async def append_status_history(self, record: StatusHistoryRecord) -> None:
        self.status_history.append(record)

    async def append_activity(self, record: ActivityRecord) -> None:
        self.activities.append(record)

    async def has_reminder_marker(self, quote_id: str, days: int) -> bool:
        return (quote_id, days) in self.reminder_markers

    async def insert_reminder_marker(self, quote_id: str, days: int, sent_at: datetime) -> None:
        key = (quote_id, days)
        if key in self.reminder_markers:
            raise DuplicateReminderError(
                f"Reminder for quote {quote_id} at {days} days already recorded"
            )
        self.reminder_markers[key] = sent_at

    async def delete_reminder_marker(self, quote_id: str, days: int) -> None:
        self.reminder_markers.pop((quote_id, days), None)
