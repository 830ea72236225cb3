"""Live view of a cleanup run."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.reactive import reactive
from textual.widgets import Footer, Label, RichLog, Static
from textual.worker import Worker, WorkerCancelled, WorkerState

from .executor import FINAL_STATUSES, AgentStatus, Executor
from .inventory import AgentConfig

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    AgentStatus.PENDING: ("○", "dim"),
    AgentStatus.CONNECTING: ("◌", "yellow"),
    AgentStatus.RUNNING: ("●", "yellow"),
    AgentStatus.SUCCESS: ("✔", "green"),
    AgentStatus.FAILED: ("✘", "red"),
    AgentStatus.CANCELLED: ("■", "magenta"),
}

# Leading markers of the lines run_on_agent emits
LINE_STYLES = (
    ("SCRIPT:", "bold cyan"),
    ("COMMAND:", "bold cyan"),
    ("stderr>", "red"),
    ("ERROR:", "bold red"),
)


class AgentPanel(Static):
    """Status line and scrolling output of one agent."""

    status: reactive[AgentStatus] = reactive(AgentStatus.PENDING)

    def __init__(self, agent: AgentConfig, **kwargs) -> None:
        super().__init__(**kwargs)
        self.agent = agent

    def compose(self) -> ComposeResult:
        yield Label(self._title())
        yield RichLog(wrap=True, markup=False, highlight=False)

    def _title(self) -> Text:
        icon, style = STATUS_STYLES[self.status]
        agent = self.agent
        return Text.assemble(
            (f"{icon} ", style),
            (agent.name, f"bold {style}"),
            (f"  {agent.user}@{agent.host}:{agent.port}", style),
        )

    def watch_status(self, status: AgentStatus) -> None:
        if self.is_mounted:
            self.query_one(Label).update(self._title())

    def append_output(self, line: str) -> None:
        # Remote output is untrusted, never interpret it as markup
        style = next((s for prefix, s in LINE_STYLES if line.startswith(prefix)), "")
        self.query_one(RichLog).write(Text(line, style=style))


class StatusBar(Static):
    """Progress summary docked at the bottom."""

    completed: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)
    running: reactive[bool] = reactive(True)
    dry_run: reactive[bool] = reactive(True)

    def render(self) -> Text:
        mode = "DRYRUN" if self.dry_run else "DELETING"
        state = "running" if self.running else "CLEANUP FINISHED RUNNING."
        return Text(f"{self.completed}/{self.total} agents done | {mode} | {state}")


class Dashboard(App):
    """Runs the cleanup in a worker and shows each agent as it progresses."""

    CSS = """
    AgentPanel {
        height: auto;
        max-height: 20;
        border: round $accent;
    }

    AgentPanel RichLog {
        height: auto;
        max-height: 16;
    }

    StatusBar {
        dock: bottom;
        height: 1;
        background: $boost;
    }
    """

    BINDINGS = [("q", "quit", "Quit")]

    def __init__(
        self,
        agents: list[AgentConfig],
        dry_run: bool = True,
        max_workers: int = 8,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.agents = agents
        self.dry_run = dry_run
        self.max_workers = max_workers
        self.panels: dict[str, AgentPanel] = {}
        self.executor: Executor | None = None
        self._worker: Worker | None = None

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            for agent in self.agents:
                self.panels[agent.name] = AgentPanel(agent)
                yield self.panels[agent.name]
        yield StatusBar()
        yield Footer()

    def on_mount(self) -> None:
        status_bar = self.query_one(StatusBar)
        status_bar.total = len(self.agents)
        status_bar.dry_run = self.dry_run

        self.executor = Executor(
            self.agents,
            dry_run=self.dry_run,
            max_workers=self.max_workers,
            on_output=self._on_output,
            on_status=self._on_status,
        )
        # Same event loop as the app, so cancelling the worker cancels the run
        self._worker = self.run_worker(self.executor.run_all(), exclusive=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker is self._worker and event.state == WorkerState.SUCCESS:
            self.query_one(StatusBar).running = False

    def _on_output(self, agent_name: str, line: str) -> None:
        self.panels[agent_name].append_output(line)

    def _on_status(self, agent_name: str, status: AgentStatus) -> None:
        self.panels[agent_name].status = status
        if status in FINAL_STATUSES:
            self.query_one(StatusBar).completed += 1

    async def action_quit(self) -> None:
        """Cancel the unfinished agents, wait for them to stop, then exit."""
        if self._worker is not None and self._worker.is_running:
            self._worker.cancel()
            try:
                await self._worker.wait()
            except WorkerCancelled:
                logger.info("Cleanup cancelled from the dashboard")
        self.exit()
