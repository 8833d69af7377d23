# --------------------------- quotegen/services/expiration/templates.py ----------------------------
"""
QuoteGen · Expiration Reminder Templates

OVERVIEW:
Jinja2 templates for the reminder email a customer receives as one of
their quotes approaches its expiry date, in HTML and plain text.

BUSINESS CONTEXT:
A reminder a few days before expiry is the last nudge before pricing
lapses. The message states how long is left, the quote reference and
total, and who it came from.
"""

from decimal import Decimal
from typing import Dict, Optional, Union

from jinja2 import Environment


class ReminderTemplate:
    """Reminder email templates."""

    EMAIL_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Quote Expiration Reminder</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f5f5f5; }
        .container { max-width: 600px; margin: 20px auto; background: white; border-radius: 8px; overflow: hidden; }
        .header { background-color: #d97706; color: white; padding: 30px; text-align: center; }
        .content { padding: 30px; }
        .quote-box { background: #f9fafb; border-left: 4px solid #f59e0b; padding: 15px; margin: 20px 0; }
        .quote-title { font-weight: 600; color: #111827; }
        .quote-number { color: #6b7280; font-size: 14px; }
        .quote-total { font-size: 24px; font-weight: 700; color: #059669; margin-top: 10px; }
        .urgency { background: #fef3c7; border: 1px solid #f59e0b; border-radius: 6px; padding: 12px 16px; margin: 20px 0; color: #92400e; }
        .footer { text-align: center; color: #6b7280; font-size: 12px; padding: 20px; border-top: 1px solid #e5e7eb; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Expiration Reminder</h1>
        </div>

        <div class="content">
            <p>{% if customer_name %}Hello {{ customer_name }},{% else %}Hello,{% endif %}</p>

            <p>This is a friendly reminder that your quote is set to expire <strong>{{ days_text }}</strong>.</p>

            <div class="quote-box">
                <div class="quote-title">{{ quote_title }}</div>
                <div class="quote-number">Quote #{{ quote_number }}</div>
                {% if total %}<div class="quote-total">{{ total | currency }}</div>{% endif %}
            </div>

            <div class="urgency">
                Please review and respond to this quote before it expires to ensure the pricing remains valid.
            </div>

            <p>If you have any questions or need more time to decide, please don't hesitate to reach out to us.</p>
        </div>

        <div class="footer">
            <p>{{ company_name }}</p>
            <p>This email was sent automatically. Please do not reply to this email.</p>
        </div>
    </div>
</body>
</html>
"""

    TEXT_TEMPLATE = """
{% if customer_name %}Hello {{ customer_name }},{% else %}Hello,{% endif %}

This is a friendly reminder that your quote is set to expire {{ days_text }}.

{{ quote_title }}
Quote #{{ quote_number }}
{% if total %}Total: {{ total | currency }}
{% endif %}
Please review and respond to this quote before it expires to ensure the pricing remains valid.

{{ company_name }}
This email was sent automatically. Please do not reply to this email.
"""


def format_currency(amount: Union[Decimal, float, int, None]) -> str:
    """USD amount with thousands separators, e.g. $1,234.50."""
    if amount is None:
        return ""
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def days_text(days_until_expiry: int) -> str:
    return "tomorrow" if days_until_expiry == 1 else f"in {days_until_expiry} days"


def reminder_subject(quote_number: str, days_until_expiry: int) -> str:
    return f"Reminder: Quote {quote_number} expires {days_text(days_until_expiry)}"


def _environment(autoescape: bool) -> Environment:
    env = Environment(autoescape=autoescape)
    env.filters['currency'] = format_currency
    return env


_html_env = _environment(autoescape=True)
_text_env = _environment(autoescape=False)


def render_reminder(quote_number: str, days_until_expiry: int, company_name: str,
                    quote_title: Optional[str] = None, customer_name: Optional[str] = None,
                    total: Optional[Decimal] = None) -> Dict[str, str]:
    """Render subject, HTML and text bodies for one reminder email."""
    context = {
        "quote_number": quote_number,
        "quote_title": quote_title or "Your Quote",
        "customer_name": customer_name,
        "total": total,
        "days_text": days_text(days_until_expiry),
        "company_name": company_name,
    }
    return {
        "subject": reminder_subject(quote_number, days_until_expiry),
        "html": _html_env.from_string(ReminderTemplate.EMAIL_TEMPLATE).render(**context),
        "text": _text_env.from_string(ReminderTemplate.TEXT_TEMPLATE).render(**context),
    }
