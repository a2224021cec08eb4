"""Serialization of outbound responses.

Two payload formats are supported:

- ``json``: a properly escaped JSON object.
- ``legacy``: the string shape older clients parse, built by plain
  concatenation. Values are not escaped and metadata keeps its
  trailing comma, so embedded quotes produce an invalid document.
"""

from __future__ import annotations

import json
from enum import Enum

from history_bot.bot.state import BotResponse


class WireFormat(str, Enum):
    """Supported response payload formats."""

    JSON = "json"
    LEGACY = "legacy"


def to_json(response: BotResponse) -> str:
    """Serialize a response as a JSON object."""
    return json.dumps(response.to_dict(), ensure_ascii=False)


def to_legacy(response: BotResponse) -> str:
    """Serialize a response in the legacy concatenated shape."""
    payload = "{\"sentiment\":" + json.dumps(response.sentiment) + ", "
    payload += "\"text\":\"" + response.text + "\", \"type\":\"" + response.type.value + "\""

    if response.metadata is not None:
        metadata = ""
        for pair in response.metadata:
            metadata += "\"" + pair.name + "\": \"" + pair.value + "\","
        payload += ", \"metadata\": {" + metadata + "}"

    return payload + "}"


def serialize(response: BotResponse, wire_format: WireFormat | str = WireFormat.JSON) -> str:
    """Serialize a response in the requested format.

    Args:
        response: Response to serialize
        wire_format: "json" or "legacy"

    Returns:
        Text payload for the outbound channel

    Raises:
        ValueError: If the format is unknown
    """
    wire_format = WireFormat(wire_format)
    if wire_format == WireFormat.LEGACY:
        return to_legacy(response)
    return to_json(response)
