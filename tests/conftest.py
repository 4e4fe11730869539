from __future__ import annotations

import pytest

from adapters.sqlite_storage import SQLiteStorage


@pytest.fixture
def storage(tmp_path) -> SQLiteStorage:
    db = SQLiteStorage(str(tmp_path / "quotebot.db"))
    db.init_db()
    return db
