"""Reply-thread reconstruction from the message cache."""

from __future__ import annotations

import logging
from typing import Any

from core.errors import NotFound
from core.models import BuildResult, CacheEntry
from core.payload import message_id_of, reply_id_of
from core.ports import CacheStorePort

LOGGER = logging.getLogger(__name__)


class ThreadBuilder:
    """Walks reply links backwards to rebuild a thread, oldest message first."""

    def __init__(self, storage: CacheStorePort) -> None:
        self._storage = storage

    def build_from(self, chat_id: int, message_id: int) -> BuildResult:
        """Return the reply chain that ends at ``message_id``.

        The walk stops at the chain root, at the first message missing from
        the cache, or when a reply link points back to a visited message.
        Raises NotFound when not even the starting message is cached.
        """

        entries: list[CacheEntry] = []
        visited: set[int] = set()
        current = message_id

        while current not in visited:
            visited.add(current)
            entry = self._storage.get_entry(chat_id, current)
            if entry is None:
                break
            entries.insert(0, entry)
            if not entry.reply_id:
                break
            current = entry.reply_id
        else:
            LOGGER.warning("Reply cycle detected at message %s in chat %s", current, chat_id)

        if not entries:
            raise NotFound(f"No cache entries found for message {message_id} in chat {chat_id}")

        return BuildResult(entries=entries, chat_id=chat_id)


def build_from_literal(message: dict[str, Any], chat_id: int) -> BuildResult:
    """Wrap a message the caller already holds as a one-entry thread.

    Used when the cache misses. Only this message is captured; its own reply
    reference is not followed.
    """

    # Literal messages from the transport may lack a send date.
    date = message.get("date")
    entry = CacheEntry(
        chat_id=chat_id,
        message_id=message_id_of(message),
        reply_id=reply_id_of(message),
        date=date if isinstance(date, int) else 0,
        message=message,
    )
    return BuildResult(entries=[entry], chat_id=chat_id)
