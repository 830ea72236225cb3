#!/usr/bin/env python3
"""Main entry point for agent-cleanup."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from .dashboard import Dashboard
from .executor import AgentStatus, Executor
from .inventory import AgentConfig, load_inventory
from .report import Console
from .script import resolve_dry_run

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("asyncssh").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Prune stale build directories on every online CI agent. "
            "Set DRY_RUN=false in the environment to really delete files."
        )
    )
    parser.add_argument("inventory", type=Path, help="Path to YAML agent inventory")
    parser.add_argument(
        "--key",
        type=Path,
        help="Override SSH key path from the inventory",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=8,
        help="Maximum number of agents cleaned at the same time (default: 8)",
    )
    parser.add_argument(
        "--wait-interval",
        type=float,
        default=10.0,
        help="Seconds between 'Waiting on' reports (default: 10)",
    )
    parser.add_argument(
        "--dashboard",
        action="store_true",
        help="Run with the TUI dashboard",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.max_workers < 1:
        print("Error: --max-workers must be at least 1", file=sys.stderr)
        return 1
    if args.wait_interval <= 0:
        print("Error: --wait-interval must be greater than 0", file=sys.stderr)
        return 1

    try:
        inventory = load_inventory(args.inventory)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValueError, TypeError) as e:
        print(f"Inventory error: {e}", file=sys.stderr)
        return 1

    # Override SSH key if provided (applies to all agents)
    if args.key:
        key_path = args.key.expanduser()
        inventory.defaults.ssh_key = key_path
        for agent in inventory.agents:
            agent.ssh_key = key_path

    agents = inventory.online_agents()

    # Validate the SSH keys of agents we will actually contact
    for ssh_key in {agent.ssh_key for agent in agents}:
        if not ssh_key.exists():
            print(f"Error: SSH key not found: {ssh_key}", file=sys.stderr)
            return 1

    dry_run = resolve_dry_run(os.environ.get("DRY_RUN"))
    logger.info(
        "Cleaning %d online agent(s) of %d (dry run: %s)",
        len(agents),
        len(inventory.agents),
        dry_run,
    )

    if not args.dashboard:
        return _run_headless(agents, dry_run, args.max_workers, args.wait_interval)

    app = Dashboard(agents, dry_run=dry_run, max_workers=args.max_workers)
    app.run()
    return 0


def _run_headless(
    agents: list[AgentConfig], dry_run: bool, max_workers: int, wait_interval: float
) -> int:
    """Run the executor, printing reports to the console."""
    executor = Executor(
        agents,
        dry_run=dry_run,
        max_workers=max_workers,
        wait_interval=wait_interval,
        console=Console(),
    )

    try:
        states = asyncio.run(executor.run_all())
    except KeyboardInterrupt:
        logger.error("Cleanup aborted")
        raise

    failed = [name for name, state in states.items() if state.status == AgentStatus.FAILED]
    if failed:
        logger.warning("Cleanup failed on: %s", ", ".join(failed))

    # Per-agent failures are only reported; the job itself still completes
    return 0


if __name__ == "__main__":
    sys.exit(main())
