"""Recent-message cache: ingest and edit.

The cache is a convenience layer that feeds the thread builder. New messages
are upserted by (chat_id, message_id); edits patch an existing entry in place
and are dropped when the entry is not cached.
"""

from __future__ import annotations

import logging
from typing import Any

from core.models import CacheEntry
from core.payload import (
    RawPayload,
    chat_id_of,
    date_of,
    merge_edit,
    message_id_of,
    parse_payload,
    reply_id_of,
)
from core.ports import CacheStorePort

LOGGER = logging.getLogger(__name__)


def entry_from_payload(payload: dict[str, Any]) -> CacheEntry:
    """Derive the cache key, reply link and date from a message payload."""

    return CacheEntry(
        chat_id=chat_id_of(payload),
        message_id=message_id_of(payload),
        reply_id=reply_id_of(payload),
        date=date_of(payload),
        message=payload,
    )


class MessageCache:
    """Ingest and edit operations against a cache store."""

    def __init__(self, storage: CacheStorePort) -> None:
        self._storage = storage

    def add(self, raw: RawPayload) -> CacheEntry:
        """Insert a message, or overwrite the cached copy with the same key.

        Redelivery of the same message is the normal path, not an error.
        """

        entry = entry_from_payload(parse_payload(raw))
        LOGGER.debug(
            "Caching message chat_id=%s message_id=%s date=%s",
            entry.chat_id,
            entry.message_id,
            entry.date,
        )
        self._storage.upsert_entry(entry)
        return entry

    def edit(self, raw: RawPayload) -> bool:
        """Patch a cached message with edited content.

        Returns False when the message is not cached; that is a no-op.
        """

        edit = parse_payload(raw)
        chat_id = chat_id_of(edit)
        message_id = message_id_of(edit)

        updated = self._storage.edit_entry(
            chat_id, message_id, lambda existing: merge_edit(existing, edit)
        )
        if not updated:
            LOGGER.debug(
                "Edited message not cached, skipping chat_id=%s message_id=%s",
                chat_id,
                message_id,
            )
        return updated
