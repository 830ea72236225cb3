"""Agent inventory loader for agent-cleanup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass
class Defaults:
    """Default values that can be overridden per agent."""

    user: str = "jenkins"
    port: int = 22
    ssh_key: Path = field(default_factory=lambda: Path("~/.ssh/id_rsa").expanduser())
    connect_timeout: int = 30


@dataclass
class AgentConfig:
    """Configuration for a single agent."""

    name: str
    host: str
    port: int = 22
    user: str = "jenkins"
    online: bool = True
    ssh_key: Path = field(default_factory=lambda: Path("~/.ssh/id_rsa").expanduser())
    connect_timeout: int = 30


@dataclass
class Inventory:
    """All agents registered with the CI master."""

    agents: list[AgentConfig]
    defaults: Defaults = field(default_factory=Defaults)

    def online_agents(self) -> list[AgentConfig]:
        """Agents currently flagged online, in inventory order."""
        online = [agent for agent in self.agents if agent.online]
        for agent in self.agents:
            if not agent.online:
                logger.info("Skipping offline agent %s", agent.name)
        return online


def load_inventory(inventory_path: str | Path) -> Inventory:
    """Load and validate the agent inventory from a YAML file."""
    inventory_path = Path(inventory_path).resolve()

    if not inventory_path.exists():
        raise FileNotFoundError(f"Inventory file not found: {inventory_path}")

    with open(inventory_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Inventory must be a mapping with an 'agents' list")

    return _parse_inventory(raw)


def _parse_flag(value: Any, agent_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() != "false"
    raise ValueError(f"Agent '{agent_name}' has an invalid 'online' value: {value!r}")


def _parse_defaults(raw: dict[str, Any]) -> Defaults:
    """Parse the defaults section."""
    defaults_raw = raw.get("defaults") or {}
    if not isinstance(defaults_raw, dict):
        raise ValueError("'defaults' must be a mapping")
    ssh_key_str = defaults_raw.get("ssh_key", "~/.ssh/id_rsa")
    return Defaults(
        user=defaults_raw.get("user", "jenkins"),
        port=defaults_raw.get("port", 22),
        ssh_key=Path(ssh_key_str).expanduser(),
        connect_timeout=defaults_raw.get("connect_timeout", 30),
    )


def _parse_inventory(raw: dict[str, Any]) -> Inventory:
    """Parse raw YAML data into an Inventory object."""
    defaults = _parse_defaults(raw)

    agents_raw = raw.get("agents", [])
    if not agents_raw:
        raise ValueError("No agents defined in inventory")
    if not isinstance(agents_raw, list):
        raise ValueError("'agents' must be a list")

    agents = []
    seen: set[str] = set()
    for agent_raw in agents_raw:
        agent = _parse_agent(agent_raw, defaults)
        if agent.name in seen:
            raise ValueError(f"Duplicate agent name: '{agent.name}'")
        seen.add(agent.name)
        agents.append(agent)

    return Inventory(agents=agents, defaults=defaults)


def _parse_agent(agent_raw: dict[str, Any], defaults: Defaults) -> AgentConfig:
    """Parse a single agent entry."""
    if not isinstance(agent_raw, dict):
        raise ValueError(f"Agent entry must be a mapping, got {agent_raw!r}")

    name = agent_raw.get("name")
    if not name:
        raise ValueError("Agent must have a 'name' field")

    host = agent_raw.get("host")
    if not host:
        raise ValueError(f"Agent '{name}' must have a 'host' field")

    # Connection options inherit from defaults if not specified per-agent
    ssh_key = defaults.ssh_key
    if "ssh_key" in agent_raw:
        ssh_key = Path(agent_raw["ssh_key"]).expanduser()

    return AgentConfig(
        name=str(name),
        host=host,
        port=agent_raw.get("port", defaults.port),
        user=agent_raw.get("user", defaults.user),
        online=_parse_flag(agent_raw.get("online", True), name),
        ssh_key=ssh_key,
        connect_timeout=agent_raw.get("connect_timeout", defaults.connect_timeout),
    )
