# --------------------------- quotegen/services/quote_status.py ----------------------------
"""
QuoteGen · Quote Lifecycle States

OVERVIEW:
Shared vocabulary for quote lifecycle states and the activity types that
are written to the activity log when a quote changes state.

BUSINESS LOGIC:
- Only SENT and VIEWED quotes are waiting on a customer response
- Waiting quotes are the only ones the expiration job may touch
- EXPIRED is terminal as far as automated processing is concerned
"""

from enum import Enum
from typing import FrozenSet


class QuoteStatus(Enum):
    """Quote lifecycle states."""
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class ActivityType(Enum):
    """Activity log entry types for quote events."""
    QUOTE_CREATED = "quote_created"
    QUOTE_SENT = "quote_sent"
    QUOTE_VIEWED = "quote_viewed"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_REJECTED = "quote_rejected"
    QUOTE_EXPIRED = "quote_expired"
    QUOTE_CONVERTED = "quote_converted"
    STATUS_CHANGED = "status_changed"


# Statuses still waiting on the customer; eligible for expiry and reminders
PENDING_RESPONSE_STATUSES: FrozenSet[QuoteStatus] = frozenset({QuoteStatus.SENT, QuoteStatus.VIEWED})

_ACTIVITY_BY_STATUS = {
    QuoteStatus.DRAFT: ActivityType.QUOTE_CREATED,
    QuoteStatus.PENDING: ActivityType.STATUS_CHANGED,
    QuoteStatus.SENT: ActivityType.QUOTE_SENT,
    QuoteStatus.VIEWED: ActivityType.QUOTE_VIEWED,
    QuoteStatus.ACCEPTED: ActivityType.QUOTE_ACCEPTED,
    QuoteStatus.REJECTED: ActivityType.QUOTE_REJECTED,
    QuoteStatus.EXPIRED: ActivityType.QUOTE_EXPIRED,
    QuoteStatus.CONVERTED: ActivityType.QUOTE_CONVERTED,
}


def is_pending_response(status: QuoteStatus) -> bool:
    """True when the quote is still waiting on a customer decision."""
    return status in PENDING_RESPONSE_STATUSES


def activity_type_for_status(status: QuoteStatus) -> ActivityType:
    """Map a new quote status to the activity type recorded for it."""
    return _ACTIVITY_BY_STATUS.get(status, ActivityType.STATUS_CHANGED)
