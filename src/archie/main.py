"""
Archie entry point.

This file handles startup concerns (arg-parsing, logging, sandbox setup) and launches the
appropriate interface (CLI or API).
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from archie.config import settings

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Hello! This is your Archie sandbox.\n"
    "You can create, move and organise files here.\n"
)
SEED_FOLDERS = ("documents", "projects")


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
    logging.getLogger("httpx").setLevel(logging.WARNING)


def ensure_sandbox(base_dir: Path) -> None:
    """Create the sandbox root and seed it when empty."""
    base_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(base_dir, os.W_OK):
        raise PermissionError(f"Sandbox directory is not writable: {base_dir}")
    if any(base_dir.iterdir()):
        return
    (base_dir / "welcome.txt").write_text(WELCOME_TEXT, encoding="utf-8")
    for folder in SEED_FOLDERS:
        (base_dir / folder).mkdir(exist_ok=True)
    logger.info("Seeded new sandbox at %s", base_dir)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the Archie application.

    This function sets up the command-line interface, initializes logging, prepares the sandbox and
    starts the application in either CLI or API mode.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run the Archie file assistant")
    parser.add_argument(
        "--mode",
        choices=["cli", "api"],
        type=str.lower,
        default="cli",
        help="Launch the interactive CLI or the REST API (default: cli)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.add_argument(
        "--base-dir",
        default=settings.ARCHIE_BASE_DIR,
        help="Sandbox root directory (default from env: %(default)s)",
    )
    parser.add_argument(
        "--planner",
        type=str.lower,
        default=settings.PLANNER,
        help="Model back-end: ollama, openai or anthropic (default from env: %(default)s)",
    )
    parser.add_argument("--model", default=None, help="Model name for the chosen back-end")
    args = parser.parse_args(argv)

    # Override settings with command-line arguments
    settings.LOG_LEVEL = args.log_level
    settings.ARCHIE_BASE_DIR = str(Path(args.base_dir).expanduser().resolve())
    settings.PLANNER = args.planner
    if args.model:
        model_field = f"{args.planner.upper()}_MODEL"
        if not hasattr(settings, model_field):
            parser.error(f"Unknown planner: {args.planner}")
        setattr(settings, model_field, args.model)

    _init_logging(settings.LOG_LEVEL)

    try:
        ensure_sandbox(Path(settings.ARCHIE_BASE_DIR))
    except OSError as exc:
        logger.error("Cannot prepare sandbox: %s", exc)
        sys.exit(1)

    logger.info("Starting Archie [%s mode]", args.mode)

    if args.mode == "api":
        # Lazy import to avoid web dependencies if not needed
        from archie.api.app import run_api  # pylint: disable=import-outside-toplevel

        run_api(host="0.0.0.0", port=settings.API_PORT, reload=settings.DEBUG)
        return

    # Lazy imports keep CLI startup independent of the API stack
    from archie.agent.agent_loop import Agent  # pylint: disable=import-outside-toplevel
    from archie.agent.planner_interface import (  # pylint: disable=import-outside-toplevel
        load_planner,
    )
    from archie.client.cli import run_cli  # pylint: disable=import-outside-toplevel
    from archie.tools.sandbox import Workspace  # pylint: disable=import-outside-toplevel

    try:
        planner = load_planner(args.planner)
    except ValueError as exc:
        parser.error(str(exc))

    agent = Agent(
        planner=planner,
        workspace=Workspace.from_settings(settings),
        max_iterations=settings.MAX_ITERATIONS,
    )
    run_cli(agent)


if __name__ == "__main__":
    main()
