"""Console report formatting for agent-cleanup."""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

SEPARATOR = "=" * 35
INDENT = "    "


def _indent(lines: list[str]) -> str:
    return ("\n" + INDENT).join(lines)


def format_report(agent_name: str, dry_run: bool, output: list[str]) -> str:
    """Render the block printed once an agent has finished."""
    # Output may hold multi-line chunks (captured stdout/stderr)
    lines = "\n".join(output).split("\n")
    return "\n".join(
        [
            SEPARATOR,
            f"SLAVE: {agent_name}",
            f"DRYRUN: {str(dry_run).lower()}",
            "EXECUTED ON SLAVE:",
            INDENT + _indent(lines),
            SEPARATOR,
        ]
    )


def format_waiting(names: list[str]) -> str:
    return f"Waiting on {len(names)} agents:\n{INDENT}{_indent(names)}"


def format_finished() -> str:
    return "\n".join([SEPARATOR, "CLEANUP FINISHED RUNNING.", SEPARATOR])


def format_cancelled(names: list[str]) -> str:
    return f"WARNING: {len(names)} agent(s) cancelled:\n{INDENT}{_indent(names)}"


class Console:
    """Writes whole blocks to a stream so concurrent reports never interleave."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
        self.lock = asyncio.Lock()

    async def write(self, text: str) -> None:
        async with self.lock:
            self.write_now(text)

    def write_now(self, text: str) -> None:
        """Write without taking the lock, for use outside the event loop."""
        print(text, file=self.stream, flush=True)
