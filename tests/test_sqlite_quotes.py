from __future__ import annotations

import sqlite3

import pytest

from adapters.sqlite_storage import SQLiteStorage
from core.errors import InvalidInput, StoreFailure
from helpers import CHAT_ID, OTHER_CHAT_ID, make_payload

CREATOR = {"id": 1, "first_name": "Creator"}


def _row_count(storage_path: str, table: str) -> int:
    conn = sqlite3.connect(storage_path)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


def test_store_rejects_empty_entries(tmp_path) -> None:
    path = str(tmp_path / "quotes.db")
    storage = SQLiteStorage(path)
    storage.init_db()

    with pytest.raises(InvalidInput):
        storage.store_quote(CREATOR, CHAT_ID, [])

    assert _row_count(path, "quote") == 0
    assert _row_count(path, "quote_entry") == 0


def test_store_keeps_input_order(storage: SQLiteStorage) -> None:
    messages = [make_payload(i, text=f"line {i}") for i in (10, 11, 12)]

    quote = storage.store_quote(CREATOR, CHAT_ID, messages)
    reloaded = storage.get_quote(quote.id)

    assert quote == reloaded
    assert reloaded.chat_id == CHAT_ID
    assert reloaded.creator == CREATOR
    assert [entry.order for entry in reloaded.entries] == [0, 1, 2]
    assert [entry.message for entry in reloaded.entries] == messages
    assert {entry.quote_id for entry in reloaded.entries} == {quote.id}


def test_store_snapshots_messages(storage: SQLiteStorage) -> None:
    message = make_payload(1, text="before")
    quote = storage.store_quote(CREATOR, CHAT_ID, [message])

    message["text"] = "after"

    assert storage.get_quote(quote.id).entries[0].message["text"] == "before"


def test_store_is_atomic(storage: SQLiteStorage) -> None:
    # A non-serializable payload fails after the quote row was inserted.
    with pytest.raises(InvalidInput) as excinfo:
        storage.store_quote(CREATOR, CHAT_ID, [make_payload(1), {"bad": object()}])

    assert isinstance(excinfo.value.__cause__, TypeError)
    assert storage.count_quotes(CHAT_ID) == 0


def test_store_rejects_circular_creator(storage: SQLiteStorage) -> None:
    creator: dict = {"id": 1}
    creator["self"] = creator

    with pytest.raises(InvalidInput):
        storage.store_quote(creator, CHAT_ID, [make_payload(1)])

    assert storage.count_quotes(CHAT_ID) == 0


def test_random_quote_is_none_for_empty_chat(storage: SQLiteStorage) -> None:
    storage.store_quote(CREATOR, OTHER_CHAT_ID, [make_payload(1, chat_id=OTHER_CHAT_ID)])

    assert storage.get_random_quote(CHAT_ID) is None
    assert storage.count_quotes(CHAT_ID) == 0


def test_random_quote_only_returns_quotes_of_chat(storage: SQLiteStorage) -> None:
    own = {
        storage.store_quote(CREATOR, CHAT_ID, [make_payload(i), make_payload(i + 100)]).id
        for i in range(1, 4)
    }
    storage.store_quote(CREATOR, OTHER_CHAT_ID, [make_payload(1, chat_id=OTHER_CHAT_ID)])

    picked = {storage.get_random_quote(CHAT_ID).id for _ in range(60)}

    assert picked <= own
    # 60 uniform draws over 3 quotes miss one with probability ~1e-10.
    assert picked == own
    assert storage.count_quotes(CHAT_ID) == 3


def test_random_quote_entries_are_ordered(storage: SQLiteStorage) -> None:
    storage.store_quote(CREATOR, CHAT_ID, [make_payload(i) for i in range(5)])

    quote = storage.get_random_quote(CHAT_ID)

    assert [entry.order for entry in quote.entries] == [0, 1, 2, 3, 4]


def test_get_quote_missing(storage: SQLiteStorage) -> None:
    assert storage.get_quote(404) is None


def test_delete_cascades_to_entries(tmp_path) -> None:
    path = str(tmp_path / "quotes.db")
    storage = SQLiteStorage(path)
    storage.init_db()
    kept = storage.store_quote(CREATOR, CHAT_ID, [make_payload(1)])
    doomed = storage.store_quote(CREATOR, CHAT_ID, [make_payload(2), make_payload(3)])

    assert storage.delete_quote(doomed.id) is True

    assert storage.get_quote(doomed.id) is None
    assert storage.get_quote(kept.id) is not None
    assert _row_count(path, "quote_entry") == 1
    assert storage.delete_quote(doomed.id) is False


def test_store_failure_wraps_sqlite_errors(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "missing" / "quotes.db"))

    with pytest.raises(StoreFailure) as excinfo:
        storage.count_quotes(CHAT_ID)

    assert isinstance(excinfo.value.__cause__, sqlite3.Error)
