"""CLI entry point for the Airtable Agent.

A terminal chat loop for testing agents against a real base without
running the HTTP server.  Every line is routed on its own, exactly like a
single-message HTTP request (there is no conversation memory).

Usage:
    python -m airtable_agent.main            # normal mode (quiet)
    python -m airtable_agent.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from airtable_agent.dispatcher import DispatchError, create_dispatcher
from airtable_agent.models import ChatMessage
from airtable_agent.services.llm_client import verify_connection

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("airtable_agent").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="Airtable Agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Airtable Agent - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'agents' to list agents.")
    print("=" * 60 + "\n")

    verify_connection()
    dispatcher = create_dispatcher()

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye!")
            break

        if user_input.lower() == "agents":
            for descriptor in dispatcher.descriptors:
                print(f"  - {descriptor.name}: {descriptor.description}")
            print()
            continue

        try:
            reply = dispatcher.route([ChatMessage(role="user", content=user_input)])
            print(f"\nAgent: {reply}\n")
        except DispatchError as e:
            print(f"\nAgent: {e}\n")
        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nAgent: I'm sorry, something went wrong: {e}\n")


if __name__ == "__main__":
    main()
