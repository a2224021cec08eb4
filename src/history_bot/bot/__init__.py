"""History-taking bot turn processing.

Modules:
- state: Intents, response types, memory record and result types
- turn: Activities, turn context and outbound channels
- responses: Patient response texts
- wire: Response payload serialization
- handlers: Intent handlers and knowledge base fallback
- dispatcher: Per-turn orchestration

Usage:
    from history_bot.bot import Activity, CollectingChannel, TurnContext, TurnDispatcher

    dispatcher = TurnDispatcher(services, user_state)
    context = TurnContext(
        activity=Activity(type="message", user_id="student-1", text="remember 10 Downing St"),
        channel=CollectingChannel(),
    )
    response = await dispatcher.handle_turn(context)
"""

from history_bot.bot.state import (
    BotIntent,
    BotResponse,
    MetadataPair,
    QueryResult,
    RecognizerResult,
    ResponseType,
    UserHistoryState,
)
from history_bot.bot.turn import (
    Activity,
    ActivityType,
    CollectingChannel,
    OutboundChannel,
    TurnContext,
)
from history_bot.bot.wire import WireFormat, serialize
from history_bot.bot.handlers import IntentHandlers
from history_bot.bot.dispatcher import TurnDispatcher

__all__ = [
    # State and results
    "BotIntent",
    "BotResponse",
    "MetadataPair",
    "QueryResult",
    "RecognizerResult",
    "ResponseType",
    "UserHistoryState",
    # Turn
    "Activity",
    "ActivityType",
    "CollectingChannel",
    "OutboundChannel",
    "TurnContext",
    # Serialization
    "WireFormat",
    "serialize",
    # Handling
    "IntentHandlers",
    "TurnDispatcher",
]
