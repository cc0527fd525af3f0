#!/usr/bin/env python3
"""
Interactive terminal chat over handle_turn.
Run from backend: python scripts/chat_cli.py [--user cli-user] [--local]

Type what you ate or did; "yes" confirms, "no" cancels, "quit" exits.
With --local entries are kept in memory instead of the configured ledger.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

logger = logging.getLogger(__name__)

QUIT_WORDS = {"quit", "exit", ":q"}


async def _loop(user_id: str, local: bool) -> int:
    from foodlog.config import log_config
    from foodlog.conversation import ConversationSession
    from foodlog.events import LoggingEventSink
    from foodlog.llm import ExtractionEngine
    from foodlog.persistence import InMemoryLedger, PersistenceGateway, build_gateway
    from foodlog.search import SearchAugmentor

    log_config()
    events = LoggingEventSink(level=logging.DEBUG)
    gateway = PersistenceGateway(InMemoryLedger(), events=events) if local else build_gateway(events=events)
    session = ConversationSession(
        user_id,
        augmentor=SearchAugmentor(events=events),
        engine=ExtractionEngine(events=events),
        gateway=gateway,
        events=events,
    )
    print("Food log chat. Type 'quit' to exit.")
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if line.strip().lower() in QUIT_WORDS:
            break
        if not line.strip():
            continue
        result = await session.handle_turn(line)
        print(result.display_text)
        if result.confidence_percent is not None:
            print(f"  [confidence {result.confidence_percent}% | state {result.state}]")
    await gateway.drain()
    if local:
        for entry in gateway.ledger.entries:
            print(f"  saved: {entry.name} {entry.calories} cal ({entry.meal_type.value if entry.meal_type else 'exercise'})")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Chat-based food and exercise logging")
    parser.add_argument("--user", default="cli-user", help="owner id for saved entries")
    parser.add_argument("--local", action="store_true", help="keep entries in memory only")
    parser.add_argument("--verbose", action="store_true", help="show pipeline logs")
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s %(message)s",
    )
    return asyncio.run(_loop(args.user, args.local))


if __name__ == "__main__":
    sys.exit(main())
