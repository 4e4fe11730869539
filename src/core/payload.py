"""Narrow typed views over opaque message payloads.

Payloads follow the Telegram Bot API message shape (``message_id``,
``chat.id``, ``date``, ``text``, ``from``, ``reply_to_message``) but carry
any number of extra fields. The core never relies on a fixed schema; it pulls
the few fields it needs through the helpers below.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Optional, Union

from core.errors import MalformedPayload

RawPayload = Union[dict[str, Any], str, bytes]

# Fields an edit replaces wholesale. A field missing from the edit means the
# edited message no longer carries it.
EDITABLE_FIELDS = ("text", "caption", "entities", "caption_entities")

# Fields an edit overlays only when it carries them.
OVERLAY_FIELDS = ("from", "edit_date")

UNKNOWN_AUTHOR = "Unknown"
NO_TEXT = "(no text)"


def parse_payload(raw: RawPayload) -> dict[str, Any]:
    """Return the payload as a dict, decoding JSON text when needed."""

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedPayload(f"Message payload is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise MalformedPayload(f"Message payload must be an object, got {type(raw).__name__}")
    return raw


def _require_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPayload(f"Message payload field {name!r} must be an integer")
    return value


def chat_id_of(payload: dict[str, Any]) -> int:
    chat = payload.get("chat")
    if not isinstance(chat, dict):
        raise MalformedPayload("Message payload field 'chat' must be an object")
    return _require_int(chat.get("id"), "chat.id")


def message_id_of(payload: dict[str, Any]) -> int:
    return _require_int(payload.get("message_id"), "message_id")


def date_of(payload: dict[str, Any]) -> int:
    return _require_int(payload.get("date"), "date")


def reply_id_of(payload: dict[str, Any]) -> Optional[int]:
    """Return the id of the replied-to message, or None for a chain root."""

    reply = payload.get("reply_to_message")
    if not isinstance(reply, dict):
        return None
    reply_id = reply.get("message_id")
    if isinstance(reply_id, bool) or not isinstance(reply_id, int) or reply_id == 0:
        return None
    return reply_id


def text_of(payload: dict[str, Any]) -> str:
    text = payload.get("text")
    return text if isinstance(text, str) else ""


def sender_of(payload: dict[str, Any]) -> dict[str, Any]:
    sender = payload.get("from")
    return sender if isinstance(sender, dict) else {}


def author_name(sender: dict[str, Any]) -> str:
    """Build a display name from a sender dict.

    First name (plus last name when present) wins over everything else, then
    the last name alone, then ``@username``, then ``Unknown``.
    """

    first = sender.get("first_name") or ""
    last = sender.get("last_name") or ""
    username = sender.get("username") or ""

    name = " ".join(part for part in (first, last) if part)
    if name:
        return name
    if username:
        return f"@{username}"
    return UNKNOWN_AUTHOR


def merge_edit(existing: dict[str, Any], edit: dict[str, Any]) -> dict[str, Any]:
    """Apply an edited-message payload on top of the cached one.

    Identity, reply link, send date and chat metadata come from the cached
    message; content fields come from the edit.
    """

    merged = copy.deepcopy(existing)
    for name in EDITABLE_FIELDS:
        if name in edit:
            merged[name] = copy.deepcopy(edit[name])
        else:
            merged.pop(name, None)
    for name in OVERLAY_FIELDS:
        if edit.get(name):
            merged[name] = copy.deepcopy(edit[name])
    return merged


def user_snapshot(user: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Return the creator snapshot stored with a quote."""

    if not user:
        return {"id": 0, "first_name": UNKNOWN_AUTHOR}

    snapshot: dict[str, Any] = {
        "id": user.get("id", 0),
        "first_name": user.get("first_name") or "",
    }
    if user.get("last_name"):
        snapshot["last_name"] = user["last_name"]
    if user.get("username"):
        snapshot["username"] = user["username"]
    return snapshot
