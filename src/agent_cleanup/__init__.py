"""agent-cleanup: Prune stale build directories on every online CI agent."""

from .executor import AgentState, AgentStatus, Executor, run_on_agent
from .inventory import AgentConfig, Defaults, Inventory, load_inventory
from .script import build_commands, build_script, resolve_dry_run

__all__ = [
    "AgentConfig",
    "Defaults",
    "Inventory",
    "load_inventory",
    "Executor",
    "AgentStatus",
    "AgentState",
    "run_on_agent",
    "build_commands",
    "build_script",
    "resolve_dry_run",
]
