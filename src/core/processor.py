"""Core command processing.

This module is integration-agnostic. It only relies on ports for storage and
replies, so the Telegram wiring in app.py stays thin.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.errors import NotFound
from core.models import BuildResult, CommandContext
from core.payload import user_snapshot
from core.ports import QuoteStorePort, ReplierPort
from core.rendering import render_quote, render_quote_with_date
from core.threads import ThreadBuilder, build_from_literal

LOGGER = logging.getLogger(__name__)

ADD_QUOTE = "addquote"
RANDOM_QUOTE = "rquote"

MSG_REPLY_REQUIRED = "Please reply to a message to add it as a quote."
MSG_BUILD_FAILED = "Could not build quote. The message may be too old or not in cache."
MSG_NO_QUOTES = "No quotes found in this chat. Add some with /addquote!"
MSG_NO_QUOTE_PICKED = "No quotes found in this chat."


def extract_command(text: str) -> str:
    """Return the command name of a ``/command@bot args`` message, or ''."""

    if not text or not text.startswith("/"):
        return ""
    head = text[1:].split(" ", 1)[0]
    return head.split("@", 1)[0]


class ChatFilter:
    """Static chat allowlist. An empty allowlist lets every chat through.

    With ``auto_leave`` set the bot leaves chats that fail the check.
    """

    def __init__(self, allowed_chat_ids: Iterable[int], auto_leave: bool = False) -> None:
        self._allowed = frozenset(allowed_chat_ids)
        self.auto_leave = auto_leave

    @property
    def allow_all(self) -> bool:
        return not self._allowed

    def is_allowed(self, chat_id: int) -> bool:
        return self.allow_all or chat_id in self._allowed


class CommandProcessor:
    """Routes /addquote and /rquote to the thread builder and quote store."""

    def __init__(
        self,
        builder: ThreadBuilder,
        quotes: QuoteStorePort,
        replier: ReplierPort,
    ) -> None:
        self._builder = builder
        self._quotes = quotes
        self._replier = replier

    async def handle(self, context: CommandContext) -> None:
        """Run the command carried by ``context``; ignore anything else."""

        command = extract_command(context.text)
        if not command:
            return
        if command == ADD_QUOTE:
            await self.add_quote(context)
        elif command == RANDOM_QUOTE:
            await self.random_quote(context)
        else:
            LOGGER.debug("Unknown command %s in chat %s", command, context.chat_id)

    def _build(self, context: CommandContext) -> BuildResult:
        try:
            return self._builder.build_from(context.chat_id, context.reply_to_message_id)
        except NotFound:
            if context.reply_to_message is None:
                raise
            LOGGER.info(
                "Message %s not cached in chat %s, quoting it directly",
                context.reply_to_message_id,
                context.chat_id,
            )
            return build_from_literal(context.reply_to_message, context.chat_id)

    async def add_quote(self, context: CommandContext) -> None:
        LOGGER.info("Executing /addquote in chat %s", context.chat_id)

        if context.reply_to_message_id is None:
            await self._replier.reply(context.chat_id, MSG_REPLY_REQUIRED, context.message_id)
            return

        try:
            result = self._build(context)
        except NotFound:
            await self._replier.reply(context.chat_id, MSG_BUILD_FAILED, context.message_id)
            return

        quote = self._quotes.store_quote(
            user_snapshot(context.sender),
            result.chat_id,
            [entry.message for entry in result.entries],
        )
        LOGGER.info(
            "Quote %s saved in chat %s with %s entries",
            quote.id,
            quote.chat_id,
            len(quote.entries),
        )
        confirmation = f"Quote #{quote.id} added with {len(quote.entries)} entries!"
        await self._replier.reply(
            context.chat_id,
            f"{confirmation}\n{render_quote(quote)}",
            context.message_id,
        )

    async def random_quote(self, context: CommandContext) -> None:
        LOGGER.info("Executing /rquote in chat %s", context.chat_id)

        if self._quotes.count_quotes(context.chat_id) == 0:
            await self._replier.reply(context.chat_id, MSG_NO_QUOTES)
            return

        quote = self._quotes.get_random_quote(context.chat_id)
        if quote is None:
            await self._replier.reply(context.chat_id, MSG_NO_QUOTE_PICKED)
            return

        await self._replier.reply(context.chat_id, render_quote_with_date(quote))
