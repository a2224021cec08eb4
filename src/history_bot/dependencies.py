"""Dependency Injection for History Bot.

Provides FastAPI dependency functions for the state store and the turn
dispatcher.

Thread Safety:
    Singleton factories use threading.Lock() to prevent race conditions
    during concurrent initialization.

Usage:
    from history_bot.dependencies import DispatcherDep

    @router.post("/endpoint")
    async def handler(dispatcher: DispatcherDep):
        ...
"""

from __future__ import annotations

import threading
from typing import Annotated

from fastapi import Depends

from history_bot.bot.dispatcher import TurnDispatcher
from history_bot.config import get_settings
from history_bot.services.registry import get_bot_services
from history_bot.storage.state_store import MemoryStateStore, StateStore, UserStateAccessor


_store_lock = threading.Lock()
_dispatcher_lock = threading.Lock()

_state_store: StateStore | None = None
_dispatcher: TurnDispatcher | None = None


def get_state_store() -> StateStore:
    """Get the shared state store."""
    global _state_store
    if _state_store is None:
        with _store_lock:
            if _state_store is None:
                _state_store = MemoryStateStore()
    return _state_store


def get_dispatcher() -> TurnDispatcher:
    """Get the shared turn dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        with _dispatcher_lock:
            if _dispatcher is None:
                _dispatcher = TurnDispatcher.from_settings(
                    get_settings(),
                    get_bot_services(),
                    UserStateAccessor(get_state_store()),
                )
    return _dispatcher


DispatcherDep = Annotated[TurnDispatcher, Depends(get_dispatcher)]


def reset_dependencies() -> None:
    """Drop cached singletons (for testing)."""
    global _state_store, _dispatcher
    with _store_lock, _dispatcher_lock:
        _state_store = None
        _dispatcher = None
