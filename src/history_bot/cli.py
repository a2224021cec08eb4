#!/usr/bin/env python3
"""CLI tools for the history bot.

Usage:
    python -m history_bot.cli chat              # Interactive text chat
    python -m history_bot.cli ask "<message>"   # Run a single turn
    python -m history_bot.cli serve             # Start the HTTP server
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from history_bot.bot.dispatcher import TurnDispatcher
from history_bot.bot.turn import Activity, OutboundChannel, TurnContext
from history_bot.config import get_settings
from history_bot.core.exceptions import HistoryBotError
from history_bot.core.logging import get_logger, setup_logging
from history_bot.services.registry import build_bot_services
from history_bot.storage.state_store import MemoryStateStore, UserStateAccessor

log = get_logger(__name__)


class ConsoleChannel(OutboundChannel):
    """Prints bot replies to stdout."""

    async def send(self, text: str) -> None:
        """Print the payload."""
        print(f"Patient: {text}\n")


def _build_dispatcher(args: argparse.Namespace) -> TurnDispatcher:
    """Build a dispatcher with an in-process state store."""
    settings = get_settings()
    if getattr(args, "legacy", False):
        settings = settings.model_copy(
            update={"bot": settings.bot.model_copy(update={"wire_format": "legacy"})}
        )

    return TurnDispatcher.from_settings(
        settings,
        build_bot_services(settings),
        UserStateAccessor(MemoryStateStore()),
    )


def interactive_chat(args: argparse.Namespace) -> int:
    """Interactive chat mode."""
    print("\n=== Interactive Chat Mode ===")
    print("Type 'quit' or 'exit' to end.\n")

    dispatcher = _build_dispatcher(args)
    channel = ConsoleChannel()

    async def run_chat() -> int:
        turns = 0
        while True:
            try:
                user_input = input("Doctor: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            if user_input.lower() in ("quit", "exit", "q"):
                print("Goodbye!")
                break

            context = TurnContext(
                activity=Activity(type="message", user_id=args.user, text=user_input),
                channel=channel,
            )
            try:
                await dispatcher.handle_turn(context)
                turns += 1
            except HistoryBotError as e:
                print(f"Error: {e}\n")
        return turns

    turns = asyncio.run(run_chat())

    print("\n--- Session Summary ---")
    print(f"Turns: {turns}")

    return 0


def ask(args: argparse.Namespace) -> int:
    """Run a single turn and print the payload."""
    dispatcher = _build_dispatcher(args)

    context = TurnContext(
        activity=Activity(type="message", user_id=args.user, text=args.message),
        channel=ConsoleChannel(),
    )

    try:
        asyncio.run(dispatcher.handle_turn(context))
    except HistoryBotError as e:
        log.error("Turn failed", error=str(e))
        return 1

    return 0


def serve(args: argparse.Namespace) -> int:
    """Start the HTTP server."""
    from history_bot.main import run

    run()
    return 0


def main() -> int:
    """Main entry point."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_output=settings.log_json)

    parser = argparse.ArgumentParser(
        description="Pixel Dr History Bot CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # chat
    chat_parser = subparsers.add_parser("chat", help="Interactive text chat mode")
    chat_parser.add_argument("--user", type=str, default="local-user", help="User ID")
    chat_parser.add_argument(
        "--legacy", action="store_true", help="Print payloads in the legacy wire format"
    )

    # ask
    ask_parser = subparsers.add_parser("ask", help="Send a single message")
    ask_parser.add_argument("message", type=str, help="Message text")
    ask_parser.add_argument("--user", type=str, default="local-user", help="User ID")
    ask_parser.add_argument(
        "--legacy", action="store_true", help="Print payloads in the legacy wire format"
    )

    # serve
    subparsers.add_parser("serve", help="Start the HTTP server")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "chat": interactive_chat,
        "ask": ask,
        "serve": serve,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
