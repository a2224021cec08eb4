"""Bot state and result definitions.

Contains enums for intents and response types, plus dataclasses for
per-user memory, recognizer output, knowledge base answers and the
outbound response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# Entity names that carry the address for AMTSRememberAddress
DEFAULT_ADDRESS_ENTITIES: tuple[str, ...] = ("AMTSAddress", "address")


class BotIntent(str, Enum):
    """Intents the bot handles itself."""

    REMEMBER_ADDRESS = "AMTSRememberAddress"
    RECALL_ADDRESS = "AMTSRecallAddress"
    NONE = "None"


class ResponseType(str, Enum):
    """Discriminator carried in every outbound response."""

    REMEMBER_ADDRESS = "AMTSRememberAddress"
    RECALL_ADDRESS = "AMTSRecallAddress"
    QNA = "QnA"
    NO_MATCH = "NoMatchFound"


@dataclass
class UserHistoryState:
    """History-taking memory kept per user across turns."""

    patient_amts_address: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the state store."""
        return {"patient_amts_address": self.patient_amts_address}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserHistoryState:
        """Rebuild from a state store dictionary."""
        return cls(patient_amts_address=data.get("patient_amts_address"))


@dataclass
class RecognizerResult:
    """Intent recognition output for one utterance.

    Entities are grouped by entity name, each holding the matched
    surface strings in utterance order.
    """

    text: str
    intents: dict[str, float] = field(default_factory=dict)
    entities: dict[str, list[str]] = field(default_factory=dict)
    sentiment_label: str | None = None
    sentiment_score: float | None = None

    def top_intent(self) -> tuple[str, float]:
        """Get the highest scoring intent.

        Returns:
            Tuple of (intent label, score); ("None", 0.0) when no intents
        """
        if not self.intents:
            return BotIntent.NONE.value, 0.0
        label = max(self.intents, key=lambda name: self.intents[name])
        return label, self.intents[label]

    def first_entity(self, names: list[str]) -> str | None:
        """Get the first non-empty value for any of the given entity names.

        Args:
            names: Entity names to check, in priority order

        Returns:
            First matched surface string or None
        """
        for name in names:
            values = self.entities.get(name)
            if values:
                return values[0]
        return None


@dataclass
class MetadataPair:
    """Name/value pair attached to a knowledge base answer."""

    name: str
    value: str


@dataclass
class QueryResult:
    """One knowledge base answer candidate."""

    answer: str
    score: float = 0.0
    metadata: list[MetadataPair] = field(default_factory=list)
    questions: list[str] = field(default_factory=list)
    source: str | None = None
    id: int | None = None


@dataclass
class BotResponse:
    """Outbound response for a single turn.

    Exactly one is sent per inbound message.
    """

    type: ResponseType
    text: str
    sentiment: float | None = None
    metadata: list[MetadataPair] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "sentiment": self.sentiment,
            "text": self.text,
            "type": self.type.value,
        }
        if self.metadata is not None:
            result["metadata"] = {pair.name: pair.value for pair in self.metadata}
        return result
