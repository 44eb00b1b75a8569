#!/usr/bin/env python3
"""
Interactive local voice harness (no HTTP, no speech).

Usage:
  python3 scripts/chat_local.py [--user-id USER] [--busy "2026-10-20T14:00/60/Team Meeting"]

What it does:
- Sends each typed line through the same ConversationOrchestrator the API uses
- Keeps the conversation id between turns until it completes or you type /new
- Prints the turn outcome (kind, step, options, conflict details) and the reply text
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timedelta

from assistant.domain.entities.conflict import ConflictEvent
from assistant.domain.entities.conversation_state import ConversationStatus
from assistant.domain.entities.turn_result import ConflictDetected, TurnResult
from assistant.infrastructure.calendar.mock_calendar import InMemoryCalendarProvider
from assistant.wiring.dependencies import get_calendar_providers, get_orchestrator, get_timezone


def _print_header(user_id: str) -> None:
    print("\nLocal Voice Harness")
    print("-" * 60)
    print(f"user_id: {user_id}")
    print("Type what you would say and press Enter.")
    print("Commands: /new, /history, /stats, /quit, /help")
    print("-" * 60)


def _parse_busy(spec: str) -> ConflictEvent:
    """"2026-10-20T14:00/60/Team Meeting" -> a busy event starting then, lasting 60 minutes."""
    start_raw, minutes, *title = spec.split("/", 2)
    start = datetime.fromisoformat(start_raw)
    if start.tzinfo is None:
        start = start.replace(tzinfo=get_timezone())
    return ConflictEvent(
        id=f"local_{start_raw}",
        title=title[0] if title else "Busy",
        start=start,
        end=start + timedelta(minutes=int(minutes)),
        is_flexible=False,
        attendee_count=2,
        source="local",
    )


def _print_turn(result: TurnResult, step: str | None) -> None:
    print("\n--- Decision ---")
    print(f"kind: {result.kind}")
    if step is not None:
        print(f"step: {step}")
    if isinstance(result, ConflictDetected):
        conflict = result.conflict
        print(f"conflict: {conflict.type.value} ({conflict.severity.value})")
        for event in conflict.conflicting_events:
            print(f"  busy: {event.title} {event.start:%a %H:%M}-{event.end:%H:%M}")
    options = getattr(result, "options", ())
    for option in options:
        print(f"  [{option.id}] {option.label}")

    print("\n--- Reply ---")
    print(result.message.strip() or "(empty reply)")
    print("-" * 60)


def main() -> None:
    parser = argparse.ArgumentParser(description="Talk to the voice assistant decision core locally.")
    parser.add_argument("--user-id", default="local_user_1")
    parser.add_argument(
        "--busy",
        action="append",
        default=[],
        help="Busy event as START/MINUTES/TITLE, e.g. 2026-10-20T14:00/60/Team Meeting (repeatable)",
    )
    asyncio.run(_repl(parser.parse_args()))


async def _repl(args: argparse.Namespace) -> None:
    orchestrator = get_orchestrator()
    for provider in get_calendar_providers():
        if isinstance(provider, InMemoryCalendarProvider):
            for spec in args.busy:
                provider.add_event(args.user_id, _parse_busy(spec))

    user_id = args.user_id
    conversation_id: str | None = None
    _print_header(user_id)

    while True:
        try:
            text = (await asyncio.to_thread(input, "\n> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not text:
            continue

        cmd = text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new     -> forget the current conversation and start over")
            print("  /history -> show the messages of the current conversation")
            print("  /stats   -> conversation counts by status")
            print("  /quit    -> exit")
            continue
        if cmd == "/new":
            conversation_id = None
            print("Started a new conversation.")
            continue
        if cmd == "/stats":
            for key, value in orchestrator.stats().items():
                print(f"{key}: {value}")
            continue
        if cmd == "/history":
            state = orchestrator.get_conversation(conversation_id) if conversation_id else None
            if state is None:
                print("(no live conversation)")
                continue
            print("\n--- History ---")
            for message in state.messages:
                print(f"{message.role.value}: {message.content}")
            continue

        result = await orchestrator.start_or_continue(user_id, text, conversation_id)
        state = orchestrator.get_conversation(result.conversation_id) if result.conversation_id else None
        _print_turn(result, state.current_step.value if state else None)

        if state is None or state.status == ConversationStatus.completed:
            conversation_id = None
        else:
            conversation_id = state.id


if __name__ == "__main__":
    main()
