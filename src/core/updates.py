"""Routing of incoming message updates.

Every new message is cached before any command runs, so a command can quote
the message it replies to. A caching failure is logged and never blocks
command handling.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from core.cache import MessageCache
from core.errors import QuoteBotError
from core.models import CommandContext
from core.payload import text_of
from core.processor import CommandProcessor, extract_command

LOGGER = logging.getLogger(__name__)


class UpdateHandler:
    """Feeds new and edited messages to the cache and the command processor."""

    def __init__(self, cache: MessageCache, processor: CommandProcessor) -> None:
        self._cache = cache
        self._processor = processor

    async def handle_message(
        self,
        payload: dict[str, Any],
        build_context: Callable[[], Awaitable[CommandContext]],
    ) -> None:
        """Cache a new message, then run it as a command if it is one.

        ``build_context`` is only awaited for commands, since building the
        context may cost an extra round-trip to fetch the replied-to message.
        """

        try:
            self._cache.add(payload)
        except QuoteBotError:
            LOGGER.exception("Failed to cache message")

        if not extract_command(text_of(payload)):
            return
        context = await build_context()
        await self._processor.handle(context)

    async def handle_edit(self, payload: dict[str, Any]) -> bool:
        """Apply an edited message to the cache; False when it was not cached."""

        return self._cache.edit(payload)
