"""Ports (interfaces) used by the core.

Ports define the minimal contracts for storage and delivery adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from core.models import CacheEntry, Quote


class CacheStorePort(Protocol):
    """Cached message operations required by the cache and thread builder."""

    def upsert_entry(self, entry: CacheEntry) -> None:
        ...

    def get_entry(self, chat_id: int, message_id: int) -> Optional[CacheEntry]:
        ...

    def edit_entry(
        self,
        chat_id: int,
        message_id: int,
        merge: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> bool:
        ...

    def delete_entries_before(self, cutoff: int) -> int:
        ...


class QuoteStorePort(Protocol):
    """Quote persistence required by the command processor."""

    def store_quote(
        self, creator: dict[str, Any], chat_id: int, messages: list[dict[str, Any]]
    ) -> Quote:
        ...

    def get_quote(self, quote_id: int) -> Optional[Quote]:
        ...

    def get_random_quote(self, chat_id: int) -> Optional[Quote]:
        ...

    def count_quotes(self, chat_id: int) -> int:
        ...

    def delete_quote(self, quote_id: int) -> bool:
        ...


class ReplierPort(Protocol):
    """Delivery of command responses back to a chat."""

    async def reply(self, chat_id: int, text: str, reply_to: Optional[int] = None) -> None:
        ...
