from __future__ import annotations

from typing import Any, Optional

CHAT_ID = -100123
OTHER_CHAT_ID = -100999
BASE_DATE = 1_700_000_000


def make_payload(
    message_id: int,
    *,
    chat_id: int = CHAT_ID,
    text: Optional[str] = "hello",
    reply_to: Optional[int] = None,
    date: int = BASE_DATE,
    sender: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "message_id": message_id,
        "chat": {"id": chat_id, "type": "supergroup"},
        "date": date,
        "from": sender if sender is not None else {"id": 7, "first_name": "John"},
    }
    if text is not None:
        payload["text"] = text
    if reply_to is not None:
        payload["reply_to_message"] = {"message_id": reply_to}
    return payload
