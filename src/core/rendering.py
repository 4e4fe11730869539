"""Plain-text rendering of saved quotes.

Formatting lives in one place so /addquote confirmations and /rquote replies
stay consistent.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional

from core.errors import InvalidInput
from core.models import Quote, QuoteEntry
from core.payload import NO_TEXT, author_name, sender_of, text_of

DATE_FORMAT = "%Y-%m-%d %H:%M"


def render_entry(entry: QuoteEntry) -> str:
    """Render one entry as ``<Author>: <text>``."""

    author = author_name(sender_of(entry.message))
    text = text_of(entry.message) or NO_TEXT
    return f"{author}: {text}"


def render_quote(quote: Optional[Quote], include_id: bool = False) -> str:
    """Render all entries of a quote, one per line, in stored order."""

    if quote is None:
        raise InvalidInput("Cannot render a missing quote")
    if not quote.entries:
        raise InvalidInput(f"Cannot render quote {quote.id} with no entries")

    entries = sorted(quote.entries, key=lambda entry: entry.order)
    text = "\n".join(render_entry(entry) for entry in entries)
    if include_id:
        text = f"#{quote.id}\n{text}"
    return text


def render_quote_with_date(quote: Optional[Quote], tz: Optional[tzinfo] = None) -> str:
    """Render a quote with its id and the send date of its first message.

    The date line is left out when the first message has no usable date.
    ``tz`` defaults to the local timezone.
    """

    text = render_quote(quote, include_id=True)

    first = min(quote.entries, key=lambda entry: entry.order)
    date = first.message.get("date")
    if isinstance(date, bool) or not isinstance(date, int) or date <= 0:
        return text

    sent = datetime.fromtimestamp(date, tz=timezone.utc).astimezone(tz)
    return f"{text}\n📅 {sent.strftime(DATE_FORMAT)}"
