"""Conversation memory storage.

Stores per-user memory records as plain dictionaries keyed by
``{channel_id}/users/{user_id}``. Reads and writes hand out copies, so a
record changed during a turn is only visible to later turns once it has
been written back.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Callable

from history_bot.bot.state import UserHistoryState
from history_bot.core.exceptions import StateStoreError
from history_bot.core.logging import get_logger

log = get_logger(__name__)


class StateStore(ABC):
    """Abstract async key/value store for conversation memory."""

    @abstractmethod
    async def read(self, key: str) -> dict[str, Any] | None:
        """Read a stored record.

        Args:
            key: Storage key

        Returns:
            Stored dictionary or None if absent
        """
        pass

    @abstractmethod
    async def write(self, key: str, value: dict[str, Any]) -> None:
        """Write a record, replacing any previous value.

        Args:
            key: Storage key
            value: Record dictionary
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a record if present.

        Args:
            key: Storage key
        """
        pass


class MemoryStateStore(StateStore):
    """In-process state store.

    Contents are lost on restart.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    async def read(self, key: str) -> dict[str, Any] | None:
        """Read a copy of the stored record."""
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def write(self, key: str, value: dict[str, Any]) -> None:
        """Store a copy of the record."""
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        """Remove the record."""
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Get stored keys (for testing)."""
        return list(self._data)

    def clear(self) -> None:
        """Remove all records (for testing)."""
        self._data.clear()


def user_storage_key(channel_id: str, user_id: str) -> str:
    """Build the storage key for a user on a channel."""
    return f"{channel_id}/users/{user_id}"


class UserStateAccessor:
    """Typed access to the per-user history state.

    The same user id on two channels gets two separate records.
    """

    def __init__(self, store: StateStore):
        """Initialize accessor.

        Args:
            store: Underlying state store
        """
        self._store = store

    async def get(
        self,
        channel_id: str,
        user_id: str,
        default_factory: Callable[[], UserHistoryState] = UserHistoryState,
    ) -> UserHistoryState:
        """Load a user's memory, creating an empty record when absent.

        The default is returned but not written; call ``set`` to persist it.

        Args:
            channel_id: Channel the activity arrived on
            user_id: User identity
            default_factory: Builds the record for unknown users

        Returns:
            User memory record

        Raises:
            StateStoreError: If the store cannot be read
        """
        key = user_storage_key(channel_id, user_id)
        try:
            data = await self._store.read(key)
        except StateStoreError:
            raise
        except Exception as e:
            raise StateStoreError(
                "Failed to read user state",
                details={"key": key},
                cause=e,
            ) from e

        if data is None:
            return default_factory()
        return UserHistoryState.from_dict(data)

    async def set(self, channel_id: str, user_id: str, state: UserHistoryState) -> None:
        """Persist a user's memory.

        Args:
            channel_id: Channel the activity arrived on
            user_id: User identity
            state: Record to store

        Raises:
            StateStoreError: If the store cannot be written
        """
        key = user_storage_key(channel_id, user_id)
        try:
            await self._store.write(key, state.to_dict())
        except StateStoreError:
            raise
        except Exception as e:
            raise StateStoreError(
                "Failed to write user state",
                details={"key": key},
                cause=e,
            ) from e

        log.debug("User state saved", key=key)
