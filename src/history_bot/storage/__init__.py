"""Per-user conversation memory storage."""

from history_bot.storage.state_store import (
    MemoryStateStore,
    StateStore,
    UserStateAccessor,
    user_storage_key,
)

__all__ = [
    "StateStore",
    "MemoryStateStore",
    "UserStateAccessor",
    "user_storage_key",
]
