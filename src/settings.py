"""Static configuration for quotebot.

All user-editable settings (allowed chats, cache retention, logging) live in a
single JSON file for quick edits without touching Python. Secrets stay in the
environment (.env).
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless QUOTEBOT_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("QUOTEBOT_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Chats the bot serves. An empty list serves every chat.
ALLOWED_CHAT_IDS = frozenset(int(chat_id) for chat_id in _CONFIG.get("allowed_chat_ids", []))
# Leave chats that are not in the allowlist instead of silently ignoring them.
AUTO_LEAVE_UNAUTHORIZED = bool(_CONFIG.get("auto_leave_unauthorized", False))

# Where to store the SQLite database.
_database = _CONFIG.get("database", {})
DB_PATH = _resolve_path(_database.get("path", "quotebot.db"))

# Cache retention:
# - CACHE_CLEAN_INTERVAL_SECONDS: pause between eviction sweeps
# - CACHE_KEEP_SECONDS: messages older than this are evicted
_cache = _CONFIG.get("cache", {})
CACHE_CLEAN_INTERVAL_SECONDS = float(_cache.get("clean_interval_seconds", 600))
CACHE_KEEP_SECONDS = int(float(_cache.get("keep_hours", 48)) * 3600)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
