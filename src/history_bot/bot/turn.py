"""Turn context for a single inbound activity.

Wraps the inbound activity together with the channel replies are sent
on, and tracks whether the turn has already been answered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class ActivityType(str, Enum):
    """Inbound activity kinds."""

    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    TYPING = "typing"
    END_OF_CONVERSATION = "endOfConversation"
    EVENT = "event"


@dataclass
class Activity:
    """Inbound activity from a channel."""

    type: str
    user_id: str
    text: str | None = None
    channel_id: str = "direct"
    conversation_id: str | None = None
    id: str | None = None

    @property
    def is_message(self) -> bool:
        """Whether this is a user message with text."""
        return self.type == ActivityType.MESSAGE.value and bool(self.text)


class OutboundChannel(ABC):
    """Channel that delivers bot replies to the user."""

    @abstractmethod
    async def send(self, text: str) -> None:
        """Deliver one text payload.

        Args:
            text: Serialized response payload
        """
        pass


class CollectingChannel(OutboundChannel):
    """Channel that keeps replies in memory.

    Used by the HTTP endpoint to return replies in the response body.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, text: str) -> None:
        """Store the payload."""
        self.sent.append(text)


@dataclass
class TurnContext:
    """Context for processing one inbound activity."""

    activity: Activity
    channel: OutboundChannel
    responded: bool = False
    sent: list[str] = field(default_factory=list)

    async def send_activity(self, text: str) -> None:
        """Send a reply and mark the turn as responded.

        Args:
            text: Serialized response payload
        """
        await self.channel.send(text)
        self.sent.append(text)
        self.responded = True
