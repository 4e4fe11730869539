"""Application entry point for the quotebot Telegram bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_mapper import build_command_context, build_payload
from adapters.telegram_replier import TelegramReplier
from client import build_client
from core.cache import MessageCache
from core.config import CacheConfig
from core.evictor import CacheEvictor
from core.processor import ChatFilter, CommandProcessor
from core.threads import ThreadBuilder
from core.updates import UpdateHandler

NAME = "QUOTEBOT"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"


class _SecretMaskingFormatter(logging.Formatter):
    """Formatter that masks the values of secret environment variables."""

    def __init__(self, env_names: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        values = {os.getenv(name) for name in env_names}
        # Longest first so a token containing another secret is masked whole.
        self._secrets = sorted((value for value in values if value), key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text


def _log_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/quotebot.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging(config: Optional[dict] = None) -> None:
    """Install console/file handlers from the "logging" section of config.json."""

    config = settings.LOGGING if config is None else config
    if not config or not config.get("enabled", False):
        return

    # Secrets live in .env; load it before reading their values.
    load_dotenv()
    redact = config.get("redact", {})
    formatter = _SecretMaskingFormatter(redact.get("patterns", []) if redact.get("enabled") else [])
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_log_file_handler(file_cfg))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _cache_config() -> CacheConfig:
    return CacheConfig(
        clean_interval=settings.CACHE_CLEAN_INTERVAL_SECONDS,
        keep_duration=settings.CACHE_KEEP_SECONDS,
    )


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting quotebot")

    storage = _open_storage()
    chat_filter = ChatFilter(settings.ALLOWED_CHAT_IDS, auto_leave=settings.AUTO_LEAVE_UNAUTHORIZED)
    logger.info(
        "Chat filter: allow_all=%s, auto_leave=%s, chats=%s",
        chat_filter.allow_all,
        chat_filter.auto_leave,
        sorted(settings.ALLOWED_CHAT_IDS),
    )

    client = build_client()

    # The core only sees ports; Telethon stays behind the adapters.
    update_handler = UpdateHandler(
        MessageCache(storage),
        CommandProcessor(ThreadBuilder(storage), storage, TelegramReplier(client)),
    )
    evictor = CacheEvictor(storage, _cache_config())

    async def _reject_unauthorized(event) -> bool:
        if chat_filter.is_allowed(event.chat_id):
            return False
        logger.info("Ignoring update from unauthorized chat %s", event.chat_id)
        if chat_filter.auto_leave and not event.is_private:
            logger.info("Leaving unauthorized chat %s", event.chat_id)
            try:
                await client.kick_participant(event.chat_id, "me")
            except Exception:
                logger.exception("Failed to leave chat %s", event.chat_id)
        return True

    @client.on(events.NewMessage())
    async def on_message(event) -> None:
        try:
            if await _reject_unauthorized(event):
                return
            message = event.message
            payload = await build_payload(message)
            await update_handler.handle_message(
                payload, lambda: build_command_context(message, payload)
            )
        except Exception:
            logger.exception("Error while processing message")

    @client.on(events.MessageEdited())
    async def on_edit(event) -> None:
        try:
            if await _reject_unauthorized(event):
                return
            await update_handler.handle_edit(await build_payload(event.message))
        except Exception:
            logger.exception("Error while processing edited message")

    stop = asyncio.Event()
    evictor_task = client.loop.create_task(evictor.run(stop))

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    logger.info("Client connected. Listening for updates...")
    try:
        client.run_until_disconnected()
    finally:
        stop.set()
        client.loop.run_until_complete(evictor_task)
        logger.info("Quotebot stopped")


def _migrate() -> None:
    _configure_logging()
    _open_storage()
    logging.getLogger(__name__).info("Database schema ready at %s", settings.DB_PATH)


def _clean() -> None:
    _configure_logging()
    storage = _open_storage()
    deleted = CacheEvictor(storage, _cache_config()).run_once()
    print(f"Deleted {deleted} cache entries, {storage.count_entries()} remaining.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="quotebot")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("migrate", help="Create the database schema and exit")
    subparsers.add_parser("clean", help="Run a single cache eviction sweep and exit")

    args = parser.parse_args(argv)
    if args.command == "migrate":
        _migrate()
        return
    if args.command == "clean":
        _clean()
        return
    _run()


if __name__ == "__main__":
    main()
