"""Tests for the Supabase-backed quote store."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from quotegen.services.expiration.models import (
    DuplicateReminderError,
    QuoteStoreError,
    StatusHistoryRecord,
)
from quotegen.services.expiration.store import SupabaseQuoteStore
from quotegen.services.quote_status import QuoteStatus

QUERY_METHODS = ["select", "insert", "update", "delete", "eq", "lt", "gte", "lte", "in_", "order", "limit"]


def mock_client(data=None, error=None):
    """Supabase client double whose query builder chains onto itself."""
    builder = MagicMock()
    for name in QUERY_METHODS:
        getattr(builder, name).return_value = builder
    if error is not None:
        builder.execute.side_effect = error
    else:
        builder.execute.return_value = MagicMock(data=data if data is not None else [])
    client = MagicMock()
    client.table.return_value = builder
    return client, builder


QUOTE_ROW = {
    "id": "q1",
    "quote_number": "QT-001",
    "status": "sent",
    "customer_email": "dana@example.com",
    "customer_name": "Dana",
    "expires_at": "2024-05-30T00:00:00+00:00",
    "title": "Office Fit-Out",
    "total": "1250.00",
}


class TestSupabaseQuoteStore:

    @pytest.mark.asyncio
    async def test_past_expiry_query(self, now):
        client, builder = mock_client(data=[QUOTE_ROW])

        quotes = await SupabaseQuoteStore(client).find_quotes_past_expiry(now)

        client.table.assert_called_with("quotes")
        builder.lt.assert_called_once_with("expires_at", now.isoformat())
        builder.in_.assert_called_once_with("status", ["sent", "viewed"])
        builder.order.assert_called_once_with("expires_at")
        assert [q.id for q in quotes] == ["q1"]
        assert quotes[0].status == QuoteStatus.SENT

    @pytest.mark.asyncio
    async def test_expiring_within_query(self, now):
        client, builder = mock_client(data=[])

        quotes = await SupabaseQuoteStore(client).find_quotes_expiring_within(now, 3)

        builder.gte.assert_called_once_with("expires_at", now.isoformat())
        builder.lte.assert_called_once_with("expires_at", (now + timedelta(days=3)).isoformat())
        assert quotes == []

    @pytest.mark.asyncio
    async def test_fetch_api_error_becomes_store_error(self, now):
        client, _ = mock_client(error=APIError({"message": "Database error", "code": "XX000"}))

        with pytest.raises(QuoteStoreError, match="Database error"):
            await SupabaseQuoteStore(client).find_quotes_past_expiry(now)

    @pytest.mark.asyncio
    async def test_status_update_is_conditional_on_pending_status(self, now):
        client, builder = mock_client(data=[{"id": "q1"}])

        await SupabaseQuoteStore(client).update_quote_status("q1", QuoteStatus.EXPIRED, now)

        builder.update.assert_called_once_with({"status": "expired", "updated_at": now.isoformat()})
        builder.eq.assert_called_once_with("id", "q1")
        builder.in_.assert_called_once_with("status", ["sent", "viewed"])

    @pytest.mark.asyncio
    async def test_status_update_matching_no_rows_fails(self, now):
        client, _ = mock_client(data=[])

        with pytest.raises(QuoteStoreError, match="no longer awaiting"):
            await SupabaseQuoteStore(client).update_quote_status("q1", QuoteStatus.EXPIRED, now)

    @pytest.mark.asyncio
    async def test_history_insert_row(self, now):
        client, builder = mock_client(data=[{}])
        record = StatusHistoryRecord(
            quote_id="q1", from_status=QuoteStatus.VIEWED, to_status=QuoteStatus.EXPIRED, changed_at=now
        )

        await SupabaseQuoteStore(client).append_status_history(record)

        client.table.assert_called_with("quote_status_history")
        row = builder.insert.call_args.args[0]
        assert row["quote_id"] == "q1"
        assert row["from_status"] == "viewed"
        assert row["changed_by"] == "system"

    @pytest.mark.asyncio
    async def test_marker_lookup(self):
        client, builder = mock_client(data=[{"id": "m1"}])

        assert await SupabaseQuoteStore(client).has_reminder_marker("q1", 3) is True
        client.table.assert_called_with("quote_reminders")
        builder.eq.assert_any_call("days_before_expiry", 3)

    @pytest.mark.asyncio
    async def test_marker_unique_violation_is_duplicate(self, now):
        client, _ = mock_client(error=APIError({
            "message": "duplicate key value violates unique constraint \"unique_quote_reminder\"",
            "code": "23505",
        }))

        with pytest.raises(DuplicateReminderError):
            await SupabaseQuoteStore(client).insert_reminder_marker("q1", 3, now)

    def test_from_settings_requires_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)

        with pytest.raises(ValueError):
            SupabaseQuoteStore.from_settings()
