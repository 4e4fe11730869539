"""Core domain package for quotebot.

Core contains the message cache, reply-thread building, quote rendering and
command routing without any Telegram or storage-specific code, keeping the
business logic portable.
"""
