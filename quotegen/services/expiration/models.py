# --------------------------- quotegen/services/expiration/models.py ----------------------------
"""
QuoteGen · Expiration Data Model

OVERVIEW:
Value objects shared by the expiration engine, the reminder engine and
their collaborators: the slice of a quote the job reads, the audit rows it
writes, the reminder configuration, and the result objects returned to the
scheduler.

TECHNICAL ARCHITECTURE:
- Dataclasses for rows and results
- Row conversion mirrors the Supabase column names (snake_case)
- Public results serialize to the camelCase keys the dashboard reads
- Failures are tracked internally as ExpirationError and flattened to
  strings at the public boundary
"""

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from quotegen.config.settings import DEFAULT_COMPANY_NAME, DEFAULT_FROM_EMAIL, DEFAULT_REMINDER_DAYS
from quotegen.services.quote_status import ActivityType, QuoteStatus

SYSTEM_ACTOR = "system"
SYSTEM_ACTOR_NAME = "System"


# ===============================================================================
# EXCEPTIONS
# ===============================================================================

class QuoteStoreError(Exception):
    """A read or write against the quote store failed."""


class DuplicateReminderError(QuoteStoreError):
    """A reminder marker for this (quote, threshold) pair already exists."""


class NotificationError(Exception):
    """The reminder email could not be delivered to the mail provider."""


# ===============================================================================
# TIMESTAMPS
# ===============================================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp column into an aware UTC datetime.

    Supabase returns ISO-8601 text, sometimes with a trailing 'Z'. Naive
    values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# ===============================================================================
# ROWS
# ===============================================================================

@dataclass
class Quote:
    """The fields of a quote row that expiration processing reads."""
    id: str
    quote_number: str
    status: QuoteStatus
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    title: Optional[str] = None
    total: Optional[Decimal] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Quote":
        total = row.get("total")
        return cls(
            id=str(row["id"]),
            quote_number=str(row.get("quote_number") or row["id"]),
            status=QuoteStatus(row["status"]),
            customer_email=row.get("customer_email") or None,
            customer_name=row.get("customer_name") or None,
            expires_at=parse_timestamp(row.get("expires_at")),
            title=row.get("title"),
            total=Decimal(str(total)) if total is not None else None,
        )

    def days_until_expiry(self, now: datetime) -> int:
        """Whole days left before expiry, rounded up and never negative."""
        if self.expires_at is None:
            return 0
        remaining = (self.expires_at - now).total_seconds() / 86400
        return max(0, math.ceil(remaining))


@dataclass
class StatusHistoryRecord:
    """One row of the append-only quote_status_history table."""
    quote_id: str
    from_status: QuoteStatus
    to_status: QuoteStatus
    changed_at: datetime
    changed_by: str = SYSTEM_ACTOR
    changed_by_name: str = SYSTEM_ACTOR_NAME
    comment: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> Dict[str, Any]:
        # quote_status_history.id has no database default
        return {
            "id": str(uuid.uuid4()),
            "quote_id": self.quote_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "changed_by": self.changed_by,
            "changed_by_name": self.changed_by_name,
            "changed_at": self.changed_at.isoformat(),
            "comment": self.comment,
            "metadata": self.metadata,
        }


@dataclass
class ActivityRecord:
    """One row of the activities audit log."""
    type: ActivityType
    quote_id: str
    quote_number: str
    description: str
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "quote_id": self.quote_id,
            "quote_number": self.quote_number,
            "description": self.description,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


# ===============================================================================
# CONFIGURATION
# ===============================================================================

@dataclass(frozen=True)
class ReminderConfig:
    """
    Settings for one run of the reminder engine.

    Built fresh by the caller for every invocation; see
    quotegen.config.settings.load_reminder_config.
    """
    enabled: bool = True
    reminder_days: Tuple[int, ...] = DEFAULT_REMINDER_DAYS
    from_email: str = DEFAULT_FROM_EMAIL
    company_name: str = DEFAULT_COMPANY_NAME

    def __post_init__(self):
        days: List[int] = []
        for value in self.reminder_days:
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"reminder_days must be positive integers, got {value!r}")
            if value not in days:
                days.append(value)
        object.__setattr__(self, "reminder_days", tuple(days))

    def with_overrides(self, **changes) -> "ReminderConfig":
        return replace(self, **changes)


# ===============================================================================
# RESULTS
# ===============================================================================

@dataclass
class ExpirationError:
    """
    Internal description of a single failure.

    KINDS:
    - fetch: the candidate query itself failed
    - write: a status, history, activity or marker write failed for one quote
    - send: the reminder email failed for one quote
    - unexpected: anything else, caught at an entry point
    """
    kind: str
    message: str
    quote_id: Optional[str] = None
    quote_number: Optional[str] = None
    threshold_days: Optional[int] = None

    def __str__(self) -> str:
        if self.kind == "fetch":
            if self.threshold_days is not None:
                return f"Fetch error ({self.threshold_days} days): {self.message}"
            return f"Fetch error: {self.message}"
        if self.kind == "unexpected":
            return f"Unexpected error: {self.message}"
        return f"Quote {self.quote_number or self.quote_id}: {self.message}"


@dataclass
class ExpirationResult:
    expired: int = 0
    errors: List[str] = field(default_factory=list)

    def add_error(self, error: ExpirationError):
        self.errors.append(str(error))

    def to_dict(self) -> Dict[str, Any]:
        return {"expired": self.expired, "errors": list(self.errors)}


@dataclass
class ReminderResult:
    expiring_soon: int = 0
    reminders_sent: int = 0
    errors: List[str] = field(default_factory=list)

    def add_error(self, error: ExpirationError):
        self.errors.append(str(error))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expiringSoon": self.expiring_soon,
            "remindersSent": self.reminders_sent,
            "errors": list(self.errors),
        }


@dataclass
class ExpirationSummary:
    """Combined outcome of one scheduled expiration run."""
    expired: int = 0
    expiring_soon: int = 0
    reminders_sent: int = 0
    errors: List[str] = field(default_factory=list)

    @classmethod
    def merge(cls, expiration: ExpirationResult, reminders: ReminderResult) -> "ExpirationSummary":
        return cls(
            expired=expiration.expired,
            expiring_soon=reminders.expiring_soon,
            reminders_sent=reminders.reminders_sent,
            errors=[*expiration.errors, *reminders.errors],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expired": self.expired,
            "expiringSoon": self.expiring_soon,
            "remindersSent": self.reminders_sent,
            "errors": list(self.errors),
        }
