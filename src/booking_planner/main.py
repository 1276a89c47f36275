"""
booking_planner entry point.

This file handles startup concerns (arg-parsing, logging, planner setup) and launches the requested
mode: the scripted demo conversation, an interactive shell, or the REST API.
"""

import argparse
import logging
import sys
from typing import Sequence

from booking_planner.agent.runner import Runner
from booking_planner.config import settings
from booking_planner.core.errors import (
    ConfigurationError,
    RouterError,
)
from booking_planner.core.schema import TextEvent
from booking_planner.team import build_runner

logger = logging.getLogger(__name__)

DEMO_PROMPTS = (
    "i want to visit in london?",
    "on 2025-11-14",
    "also book a hotel for me ",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Keep HTTP client chatter out of the conversation
    logging.getLogger("httpx").setLevel(logging.WARNING)


def run_demo(runner: Runner, user_id: str, prompts: Sequence[str] = DEMO_PROMPTS) -> None:
    """Send *prompts* through one session, printing every text response."""
    session_id = runner.session_store.create(runner.app_name, user_id)
    for prompt in prompts:
        print(f"\n> {prompt}")
        for event in runner.run(user_id, session_id, prompt):
            if isinstance(event, TextEvent) and event.text:
                print(f"Agent Response: {event.text}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the booking planner.

    Exits with status 1 and an ``Error:`` line on standard error if startup or a run fails.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run the multi-agent booking planner")
    parser.add_argument(
        "--mode",
        choices=["demo", "chat", "api"],
        type=str.lower,
        default="demo",
        help="Scripted demo conversation, interactive shell, or REST API (default: demo)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    args = parser.parse_args(argv)

    # Override log level setting with command-line argument
    settings.LOG_LEVEL = args.log_level
    _init_logging(settings.LOG_LEVEL)
    logger.info("Starting booking planner [%s mode]", args.mode)

    try:
        runner = build_runner()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.mode == "demo":
            run_demo(runner, settings.USER_ID)
        elif args.mode == "chat":
            # Lazy import to avoid terminal setup if not needed
            from booking_planner.client.cli import (  # pylint: disable=import-outside-toplevel
                run_cli,
            )

            run_cli(runner, settings.USER_ID)
        else:
            from booking_planner.api.app import (  # pylint: disable=import-outside-toplevel
                run_api,
            )

            run_api(runner, host="0.0.0.0", port=settings.API_PORT)
    except RouterError as exc:
        logger.error("ERROR during agent execution: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
