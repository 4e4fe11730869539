from __future__ import annotations

from typing import Optional

import pytest

from adapters.sqlite_storage import SQLiteStorage
from core.cache import MessageCache
from core.errors import NotFound
from core.models import CacheEntry
from core.threads import ThreadBuilder, build_from_literal
from helpers import CHAT_ID, OTHER_CHAT_ID, make_payload


class FakeCacheStore:
    def __init__(self, entries: list[CacheEntry]) -> None:
        self.entries = {(entry.chat_id, entry.message_id): entry for entry in entries}
        self.lookups: list[int] = []

    def get_entry(self, chat_id: int, message_id: int) -> Optional[CacheEntry]:
        self.lookups.append(message_id)
        return self.entries.get((chat_id, message_id))


def _entry(message_id: int, reply_id: Optional[int]) -> CacheEntry:
    return CacheEntry(
        chat_id=CHAT_ID,
        message_id=message_id,
        reply_id=reply_id,
        date=1,
        message={"message_id": message_id},
    )


@pytest.mark.parametrize("length", [1, 2, 5])
def test_builds_full_chain_oldest_first(storage: SQLiteStorage, length: int) -> None:
    cache = MessageCache(storage)
    for message_id in range(1, length + 1):
        reply_to = message_id - 1 if message_id > 1 else None
        cache.add(make_payload(message_id, reply_to=reply_to, text=f"msg {message_id}"))

    result = ThreadBuilder(storage).build_from(CHAT_ID, length)

    assert result.chat_id == CHAT_ID
    assert [entry.message_id for entry in result.entries] == list(range(1, length + 1))
    assert [entry.message["text"] for entry in result.entries] == [
        f"msg {i}" for i in range(1, length + 1)
    ]


def test_missing_start_raises_not_found(storage: SQLiteStorage) -> None:
    with pytest.raises(NotFound):
        ThreadBuilder(storage).build_from(CHAT_ID, 1)


def test_missing_predecessor_truncates_chain(storage: SQLiteStorage) -> None:
    cache = MessageCache(storage)
    cache.add(make_payload(2, reply_to=1))
    cache.add(make_payload(3, reply_to=2))

    result = ThreadBuilder(storage).build_from(CHAT_ID, 3)

    assert [entry.message_id for entry in result.entries] == [2, 3]


def test_other_chat_is_not_visible(storage: SQLiteStorage) -> None:
    MessageCache(storage).add(make_payload(1, chat_id=CHAT_ID))

    with pytest.raises(NotFound):
        ThreadBuilder(storage).build_from(OTHER_CHAT_ID, 1)


def test_cycle_stops_walk() -> None:
    store = FakeCacheStore([_entry(1, 3), _entry(2, 1), _entry(3, 2)])

    result = ThreadBuilder(store).build_from(CHAT_ID, 3)

    assert [entry.message_id for entry in result.entries] == [1, 2, 3]
    assert store.lookups == [3, 2, 1]


def test_self_reply_stops_walk() -> None:
    store = FakeCacheStore([_entry(4, 4)])

    result = ThreadBuilder(store).build_from(CHAT_ID, 4)

    assert [entry.message_id for entry in result.entries] == [4]


def test_literal_fallback_captures_only_that_message() -> None:
    message = make_payload(99, reply_to=98, text="direct")

    result = build_from_literal(message, CHAT_ID)

    assert result.chat_id == CHAT_ID
    assert len(result.entries) == 1
    assert result.entries[0].message_id == 99
    assert result.entries[0].message is message


def test_literal_fallback_without_date() -> None:
    message = {"message_id": 5, "chat": {"id": CHAT_ID}, "text": "no date"}

    result = build_from_literal(message, CHAT_ID)

    assert result.entries[0].date == 0
