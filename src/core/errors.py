"""Error taxonomy shared by the core and its adapters."""

from __future__ import annotations


class QuoteBotError(Exception):
    """Base class for all classified failures raised by quotebot."""


class NotFound(QuoteBotError):
    """A lookup matched nothing (e.g. no cached message for a thread start)."""


class InvalidInput(QuoteBotError):
    """The caller passed something the operation cannot accept."""


class StoreFailure(QuoteBotError):
    """The backing store failed; the original error is chained as __cause__."""


class MalformedPayload(QuoteBotError):
    """A message payload could not be parsed into the expected shape."""
