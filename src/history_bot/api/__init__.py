"""API routers."""

from history_bot.api import health, messages

__all__ = ["health", "messages"]
