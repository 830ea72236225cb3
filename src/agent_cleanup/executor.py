"""Remote execution engine for agent-cleanup."""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import asyncssh

from .inventory import AgentConfig
from .report import Console, format_cancelled, format_finished, format_report, format_waiting
from .script import REMOTE_SCRIPT_TEMPLATE, build_commands, build_script

logger = logging.getLogger(__name__)


class AgentStatus(Enum):
    """Status of an agent's cleanup run."""

    PENDING = "pending"
    CONNECTING = "connecting"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINAL_STATUSES = (AgentStatus.SUCCESS, AgentStatus.FAILED, AgentStatus.CANCELLED)


@dataclass
class AgentState:
    """Runtime state for an agent."""

    config: AgentConfig
    status: AgentStatus = AgentStatus.PENDING
    output_lines: list[str] = field(default_factory=list)
    error_message: str = ""


# Type alias for output callback
OutputCallback = Callable[[str, str], None]  # (agent_name, line) -> None
StatusCallback = Callable[[str, AgentStatus], None]  # (agent_name, status) -> None


async def run_on_agent(
    conn: asyncssh.SSHClientConnection,
    script: str,
    emit: Callable[[str], None],
) -> None:
    """Upload ``script`` to a temp file on the agent and run it with bash -x.

    The script removes itself on exit. Everything worth reporting is passed
    to ``emit``; a non-zero exit status of the script is not an error.
    """
    result = await conn.run(
        f"mktemp {REMOTE_SCRIPT_TEMPLATE}", check=True, errors="replace"
    )
    path = str(result.stdout).strip()

    await conn.run(
        f"cat > {shlex.quote(path)}", input=script, check=True, errors="replace"
    )

    cmd = ["bash", "-x", path]
    emit("SCRIPT:")
    emit(script)
    emit(f"COMMAND: {' '.join(cmd)}")

    # Paths under /tmp are not guaranteed to be valid UTF-8
    proc = await conn.run(shlex.join(cmd), errors="replace")
    stdout = str(proc.stdout or "").rstrip("\n")
    stderr = str(proc.stderr or "").rstrip("\n")
    emit(f"stdout> \n{stdout}")
    emit(f"stderr> \n{stderr}")


class Executor:
    """Runs the cleanup script across all online agents."""

    def __init__(
        self,
        agents: list[AgentConfig],
        dry_run: bool = True,
        max_workers: int = 8,
        wait_interval: float = 10.0,
        on_output: OutputCallback | None = None,
        on_status: StatusCallback | None = None,
        console: Console | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.agents = agents
        self.dry_run = dry_run
        self.max_workers = max_workers
        self.wait_interval = wait_interval
        self.on_output = on_output
        self.on_status = on_status
        self.console = console
        self.commands = build_commands(dry_run)
        self.script = build_script(self.commands)
        self.states: dict[str, AgentState] = {}

    def _emit_output(self, agent_name: str, text: str) -> None:
        """Emit output for an agent, one line at a time."""
        for line in text.split("\n"):
            if agent_name in self.states:
                self.states[agent_name].output_lines.append(line)
            if self.on_output:
                self.on_output(agent_name, line)

    def _emit_status(self, agent_name: str, status: AgentStatus) -> None:
        """Emit status change for an agent."""
        if agent_name in self.states:
            self.states[agent_name].status = status
        if self.on_status:
            self.on_status(agent_name, status)

    async def _write(self, text: str) -> None:
        if self.console:
            await self.console.write(text)

    async def run_all(self) -> dict[str, AgentState]:
        """Run the cleanup on every agent and wait for all of them."""
        self.states = {agent.name: AgentState(config=agent) for agent in self.agents}
        semaphore = asyncio.Semaphore(self.max_workers)

        tasks: dict[asyncio.Task, str] = {}
        for agent in self.agents:
            task = asyncio.create_task(
                self._run_agent(agent, semaphore), name=f"agent-cleanup-{agent.name}"
            )
            tasks[task] = agent.name

        pending = {task for task in tasks if not task.done()}
        try:
            while pending:
                live = [name for task, name in tasks.items() if task in pending]
                await self._write(format_waiting(live))
                _, pending = await asyncio.wait(pending, timeout=self.wait_interval)
        except (asyncio.CancelledError, KeyboardInterrupt):
            await self._cancel(tasks)
            raise

        for task, name in tasks.items():
            if task.exception() is not None:
                logger.error("Cleanup on %s crashed: %r", name, task.exception())

        await self._write(format_finished())
        return self.states

    async def _cancel(self, tasks: dict[asyncio.Task, str]) -> None:
        """Cancel every unfinished agent task and report which were stopped."""
        cancelled = []
        for task, name in tasks.items():
            if not task.done():
                task.cancel()
                cancelled.append(name)
        await asyncio.gather(*tasks, return_exceptions=True)

        for name in cancelled:
            self._emit_status(name, AgentStatus.CANCELLED)
        if cancelled:
            logger.warning("Cancelled cleanup on %d agent(s)", len(cancelled))
            if self.console:
                self.console.write_now(format_cancelled(cancelled))

    async def _run_agent(self, agent: AgentConfig, semaphore: asyncio.Semaphore) -> None:
        """Run the cleanup script on a single agent and print its report."""
        state = self.states[agent.name]

        async with semaphore:
            self._emit_status(agent.name, AgentStatus.CONNECTING)
            logger.debug("Connecting to %s@%s:%s", agent.user, agent.host, agent.port)

            try:
                async with asyncssh.connect(
                    agent.host,
                    port=agent.port,
                    username=agent.user,
                    client_keys=[str(agent.ssh_key)],
                    known_hosts=None,  # Agents are reached over the CI network
                    connect_timeout=agent.connect_timeout,
                ) as conn:
                    self._emit_status(agent.name, AgentStatus.RUNNING)
                    await run_on_agent(
                        conn, self.script, lambda text: self._emit_output(agent.name, text)
                    )
                self._emit_status(agent.name, AgentStatus.SUCCESS)

            except asyncssh.Error as e:
                state.error_message = f"SSH error: {e}"
                self._emit_output(agent.name, f"ERROR: {e}")
                self._emit_status(agent.name, AgentStatus.FAILED)
                logger.warning("Cleanup on %s failed: %s", agent.name, e)
            except OSError as e:
                state.error_message = f"Connection error: {e}"
                self._emit_output(agent.name, f"ERROR: {e}")
                self._emit_status(agent.name, AgentStatus.FAILED)
                logger.warning("Cannot reach %s: %s", agent.name, e)
            except ValueError as e:
                # asyncssh.KeyImportError: the key file exists but cannot be parsed
                state.error_message = f"Key error: {e}"
                self._emit_output(agent.name, f"ERROR: {e}")
                self._emit_status(agent.name, AgentStatus.FAILED)
                logger.warning("Cannot load SSH key for %s: %s", agent.name, e)

        await self._write(format_report(agent.name, self.dry_run, state.output_lines))
