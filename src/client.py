"""Bot client factory.

quotebot signs in as a bot account, so the only credentials it needs are the
app's API_ID/API_HASH and the BOT_TOKEN issued by @BotFather. All three come
from the environment (.env via python-dotenv).
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION = "quotebot"
REQUIRED_ENV = ("API_ID", "API_HASH", "BOT_TOKEN")


def _read_credentials() -> dict[str, str]:
    load_dotenv()
    values = {name: os.getenv(name, "") for name in REQUIRED_ENV}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise RuntimeError(f"Missing {', '.join(missing)} in environment")
    return values


def build_client() -> TelegramClient:
    """Return a TelegramClient already signed in with the bot token.

    The session file (SESSION_NAME, default "quotebot") caches the bot's
    authorization so restarts do not log in again.
    """

    credentials = _read_credentials()
    session_name = os.getenv("SESSION_NAME", DEFAULT_SESSION)

    LOGGER.info("Signing in bot session %s", session_name)
    client = TelegramClient(session_name, int(credentials["API_ID"]), credentials["API_HASH"])
    client.start(bot_token=credentials["BOT_TOKEN"])
    return client
