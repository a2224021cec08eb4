"""Messaging endpoint.

Accepts one inbound activity per request, runs a turn and returns the
payloads the bot sent.
"""

from __future__ import annotations

import asyncio
import weakref

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from history_bot.bot.turn import Activity, CollectingChannel, TurnContext
from history_bot.core.logging import get_logger
from history_bot.dependencies import DispatcherDep
from history_bot.storage.state_store import user_storage_key

log = get_logger(__name__)

router = APIRouter()

# One lock per memory record; a lock is dropped once no turn holds or awaits it
_user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


class ChannelAccount(BaseModel):
    """Sender of an activity."""

    id: str
    name: str | None = None


class ConversationAccount(BaseModel):
    """Conversation an activity belongs to."""

    id: str


class ActivityRequest(BaseModel):
    """Inbound activity."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = "message"
    id: str | None = None
    text: str | None = None
    channel_id: str = Field(default="direct", alias="channelId")
    from_: ChannelAccount = Field(alias="from")
    conversation: ConversationAccount | None = None

    def to_activity(self) -> Activity:
        """Convert to the bot's activity type."""
        return Activity(
            type=self.type,
            user_id=self.from_.id,
            text=self.text,
            channel_id=self.channel_id,
            conversation_id=self.conversation.id if self.conversation else None,
            id=self.id,
        )


class MessagesResponse(BaseModel):
    """Payloads sent during the turn."""

    replies: list[str]


def _lock_for(key: str) -> asyncio.Lock:
    """Get the turn lock for a memory record."""
    lock = _user_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[key] = lock
    return lock


@router.post("/messages")
async def post_message(request: ActivityRequest, dispatcher: DispatcherDep) -> MessagesResponse:
    """Process one inbound activity.

    Turns for the same user are serialized.
    """
    activity = request.to_activity()
    channel = CollectingChannel()
    context = TurnContext(activity=activity, channel=channel)

    log.debug("Activity received", activity_type=activity.type, user_id=activity.user_id)

    async with _lock_for(user_storage_key(activity.channel_id, activity.user_id)):
        await dispatcher.handle_turn(context)

    return MessagesResponse(replies=channel.sent)
