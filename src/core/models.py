"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types. Message payloads stay plain dicts;
see core.payload for the typed views extracted from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class CacheEntry:
    """Cached snapshot of one chat message."""

    chat_id: int
    message_id: int
    reply_id: Optional[int]
    date: int
    message: dict[str, Any]


@dataclass(frozen=True)
class BuildResult:
    """Reply thread reconstructed from the cache, oldest message first."""

    entries: list[CacheEntry]
    chat_id: int


@dataclass(frozen=True)
class QuoteEntry:
    """One message inside a saved quote."""

    order: int
    message: dict[str, Any]
    quote_id: int


@dataclass(frozen=True)
class Quote:
    """Saved quote with its entries sorted by order."""

    id: int
    creator: dict[str, Any]
    chat_id: int
    created_at: datetime
    entries: list[QuoteEntry] = field(default_factory=list)


@dataclass(frozen=True)
class CommandContext:
    """A command message as seen by the command processor."""

    chat_id: int
    message_id: int
    text: str
    sender: Optional[dict[str, Any]]
    reply_to_message_id: Optional[int] = None
    reply_to_message: Optional[dict[str, Any]] = None
