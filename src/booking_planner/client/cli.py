"""Interactive shell talking to a local runner."""

from __future__ import annotations

import logging
from typing import Tuple

from booking_planner.agent.runner import Runner
from booking_planner.common import (
    AnsiColors,
    colored_print,
    describe_event,
)
from booking_planner.core.errors import (
    RouterError,
    StepLimitExceeded,
    UnknownSubAgent,
    UnknownTool,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI Client
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    import signal  # pylint: disable=import-outside-toplevel

    # Ensure SIGINT breaks out of slow system calls such as read()
    signal.siginterrupt(signal.SIGINT, True)

    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


def run_cli(runner: Runner, user_id: str) -> None:
    """Run an interactive conversation in a fresh session."""
    session_id = runner.session_store.create(runner.app_name, user_id)
    colored_print(
        "\n🧳 Booking planner shell - type 'exit' or 'quit' (or Ctrl+C) to exit", AnsiColors.GREEN
    )
    while True:
        colored_print("\n🧑 You: ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if user_msg.lower() in {"exit", "quit"}:
            break
        if not user_msg:
            continue

        try:
            for event in runner.run(user_id, session_id, user_msg):
                text, color = describe_event(event)
                colored_print(text, color)
        except (StepLimitExceeded, UnknownTool, UnknownSubAgent) as exc:
            # The model misbehaved on this turn; the session stays usable
            logger.warning("Turn failed: %s", exc)
            colored_print(f"⚠️ {exc}", AnsiColors.RED)
        except RouterError:
            logger.exception("Agent run failed")
            raise
