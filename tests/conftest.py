"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from quotegen.services.expiration.models import Quote, ReminderConfig
from quotegen.services.expiration.notifier import Notifier
from quotegen.services.expiration.store import InMemoryQuoteStore
from quotegen.services.quote_status import QuoteStatus

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_quote(quote_id: str, status: QuoteStatus = QuoteStatus.SENT,
               expires_in: timedelta = timedelta(days=-1), **fields) -> Quote:
    """Build a quote expiring relative to NOW."""
    defaults = {
        "quote_number": f"QT-{quote_id}",
        "customer_email": f"{quote_id}@example.com",
        "customer_name": "Test Customer",
        "title": "Office Fit-Out",
        "total": Decimal("1250.00"),
    }
    defaults.update(fields)
    return Quote(id=quote_id, status=status, expires_at=NOW + expires_in, **defaults)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryQuoteStore:
    return InMemoryQuoteStore()


@pytest.fixture
def notifier() -> AsyncMock:
    """Notifier double that records every send."""
    mock = AsyncMock(spec=Notifier)
    mock.send_reminder_email.return_value = "email-123"
    return mock


@pytest.fixture
def config() -> ReminderConfig:
    return ReminderConfig(
        enabled=True,
        reminder_days=(7, 3, 1),
        from_email="quotes@example.com",
        company_name="Acme Interiors",
    )


@pytest.fixture
def quote_factory():
    return make_quote
