"""Interactive terminal client running the agent in-process."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Tuple

from archie.agent.agent_loop import Agent
from archie.common import (
    AnsiColors,
    colored,
    colored_print,
)
from archie.core.schema import (
    AgentEvent,
    ErrorEvent,
    ResponseEvent,
    ThinkingEvent,
    ToolEndEvent,
    ToolStartEvent,
)

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}
CLEAR_COMMANDS = {"clear", "reset"}
MAX_PREVIEW_CHARS = 800


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def print_banner(agent: Agent) -> None:
    """Show where the agent works and which model it talks to."""
    line = colored("-" * 50, AnsiColors.GRAY)
    workspace = agent.workspace
    print(line)
    print(f"  [DIR] Base: {workspace.root}")
    print(f"  [i] Model: {agent.planner.name}/{agent.planner.model}")
    if workspace.extra is not None:
        print(f"  [DIR] Extra: {workspace.extra.root}")
    print(line)
    colored_print(
        '  Type "exit" to quit | "clear" to reset | Ctrl+C cancels a request', AnsiColors.GRAY
    )


def render_event(event: AgentEvent) -> None:
    """Print one agent event."""
    if isinstance(event, ThinkingEvent):
        colored_print(f"  [...] {event.message}", AnsiColors.GRAY)
    elif isinstance(event, ToolStartEvent):
        colored_print(f"  [TOOL] {event.tool}", AnsiColors.MAGENTA)
        for key, value in event.params.items():
            preview = value if len(value) <= 60 else value[:57] + "..."
            colored_print(f"      {key}: {preview}", AnsiColors.GRAY)
    elif isinstance(event, ToolEndEvent):
        if event.success:
            status = colored("[OK]", AnsiColors.GREEN)
        else:
            status = colored("[X]", AnsiColors.RED)
        print(f"  {status} {event.tool} ({event.duration_ms:.0f} ms)")
        if event.result and len(event.result) < MAX_PREVIEW_CHARS:
            colored_print("      " + event.result.replace("\n", "\n      "), AnsiColors.GRAY)
    elif isinstance(event, ResponseEvent):
        colored_print("\nArchie: ", AnsiColors.GREEN, end="")
        print(event.content)
    elif isinstance(event, ErrorEvent):
        colored_print(f"  [ERR] {event.message}", AnsiColors.RED)


# ---------------------------------------------------------------------------
# CLI loop
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


async def run_turn(agent: Agent, message: str) -> None:
    """Stream one request, letting Ctrl+C cancel it instead of killing the process."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, agent.cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # No signal handlers outside the main thread or on Windows event loops
        handler_installed = False
    try:
        async for event in agent.stream(message):
            render_event(event)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_cli(agent: Agent) -> None:
    """Run the interactive prompt until the user quits."""
    colored_print("\nArchie - file assistant", AnsiColors.CYAN)
    print_banner(agent)

    while True:
        colored_print("\n> ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if not user_msg:
            continue
        if user_msg.lower() in EXIT_COMMANDS:
            break
        if user_msg.lower() in CLEAR_COMMANDS:
            agent.clear_history()
            colored_print("  [OK] History cleared", AnsiColors.GREEN)
            continue

        asyncio.run(run_turn(agent, user_msg))

    colored_print("\nGoodbye!", AnsiColors.CYAN)
