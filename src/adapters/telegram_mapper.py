"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core. Messages are converted
to Bot API shaped dicts, which is what the cache and quote store persist.
"""

from __future__ import annotations

from typing import Any, Optional

from telethon.tl.custom import Message

from core.models import CommandContext


def _chat_type(message: Message) -> str:
    if getattr(message, "is_private", False):
        return "private"
    if getattr(message, "is_group", False):
        # Megagroups are channels under the hood.
        return "supergroup" if getattr(message, "is_channel", False) else "group"
    if getattr(message, "is_channel", False):
        return "channel"
    return "unknown"


def _reply_id_from_message(message: Message) -> Optional[int]:
    """Return the id of the message this one replies to, if any.

    Plain posts in a forum topic carry a reply header pointing at the topic
    root (forum_topic set, no reply_to_top_id). That is the topic, not a reply.
    """

    reply_to = getattr(message, "reply_to", None)
    if reply_to is None:
        return None
    reply_to_msg_id = getattr(reply_to, "reply_to_msg_id", None)
    if getattr(reply_to, "forum_topic", False) and not getattr(reply_to, "reply_to_top_id", None):
        return None
    return reply_to_msg_id or None


def user_payload(sender: Any) -> Optional[dict[str, Any]]:
    """Return the ``from`` dict for a Telethon User (or Channel) sender."""

    if sender is None:
        return None

    data: dict[str, Any] = {
        "id": sender.id,
        "is_bot": bool(getattr(sender, "bot", False)),
    }
    # Anonymous admins and channel posts are sent "as" the channel.
    first_name = getattr(sender, "first_name", None) or getattr(sender, "title", None)
    if first_name:
        data["first_name"] = first_name
    last_name = getattr(sender, "last_name", None)
    if last_name:
        data["last_name"] = last_name
    username = getattr(sender, "username", None)
    if username:
        data["username"] = username
    return data


async def build_payload(message: Message) -> dict[str, Any]:
    """Build the cached payload for a new or edited Telethon Message."""

    payload: dict[str, Any] = {
        "message_id": message.id,
        "chat": {"id": message.chat_id, "type": _chat_type(message)},
        "date": int(message.date.timestamp()),
    }

    text = message.raw_text or ""
    if text:
        payload["text"] = text

    edit_date = getattr(message, "edit_date", None)
    if edit_date:
        payload["edit_date"] = int(edit_date.timestamp())

    sender = user_payload(await message.get_sender())
    if sender:
        payload["from"] = sender

    reply_to_msg_id = _reply_id_from_message(message)
    if reply_to_msg_id:
        payload["reply_to_message"] = {"message_id": reply_to_msg_id}

    return payload


async def build_command_context(message: Message, payload: dict[str, Any]) -> CommandContext:
    """Build a CommandContext, fetching the replied-to message when there is one."""

    reply_to_msg_id = _reply_id_from_message(message)
    reply_literal = None
    if reply_to_msg_id:
        reply_message = await message.get_reply_message()
        if reply_message is not None:
            reply_literal = await build_payload(reply_message)

    return CommandContext(
        chat_id=message.chat_id,
        message_id=message.id,
        text=payload.get("text", ""),
        sender=payload.get("from"),
        reply_to_message_id=reply_to_msg_id,
        reply_to_message=reply_literal,
    )
