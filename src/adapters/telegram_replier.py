"""Telegram reply adapter.

Sends command responses back to the chat the command came from.
"""

from __future__ import annotations

from typing import Optional


class TelegramReplier:
    """Replier adapter that sends plain-text messages through Telethon."""

    def __init__(self, client) -> None:
        self._client = client

    async def reply(self, chat_id: int, text: str, reply_to: Optional[int] = None) -> None:
        """Send ``text`` to the chat, threaded under ``reply_to`` when given."""

        # Quotes carry user text verbatim, so parsing is disabled.
        await self._client.send_message(chat_id, text, reply_to=reply_to, parse_mode=None)
