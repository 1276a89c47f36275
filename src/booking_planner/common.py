"""Terminal helpers shared by the interactive entry points."""

from enum import Enum
from typing import (
    Any,
    Tuple,
)

from booking_planner.core.schema import (
    DelegationEvent,
    ErrorEvent,
    RunEvent,
    TextEvent,
    ToolCallEvent,
)


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    print(f"{color.value}{text}\033[0m", *args, **kwargs)  # ANSI reset at the end


def describe_event(event: RunEvent) -> Tuple[str, AnsiColors]:
    """Return a one-line rendering of *event* and the color to print it in."""
    if isinstance(event, TextEvent):
        prefix = "❓" if event.clarification else "🤖"
        return f"{prefix} {event.author}: {event.text}", AnsiColors.YELLOW
    if isinstance(event, ToolCallEvent):
        if event.error is not None:
            return f"[{event.tool}] {event.error}", AnsiColors.RED
        return f"[{event.tool}] {event.args} -> {event.result}", AnsiColors.GREEN
    if isinstance(event, DelegationEvent):
        return f"↪ {event.author} -> {event.target}", AnsiColors.BLUE
    if isinstance(event, ErrorEvent):
        return f"⚠️ {event.code}: {event.message}", AnsiColors.RED
    raise TypeError(f"Unsupported run event: {event!r}")
