"""Shared fixtures for agent-cleanup tests."""

from pathlib import Path

import pytest

from agent_cleanup.inventory import AgentConfig


@pytest.fixture
def agents(tmp_path: Path) -> list[AgentConfig]:
    key = tmp_path / "id_rsa"
    key.write_text("key")
    return [
        AgentConfig(name="build-01", host="10.0.0.11", ssh_key=key),
        AgentConfig(name="build-02", host="10.0.0.12", ssh_key=key),
    ]


@pytest.fixture
def write_inventory(tmp_path: Path):
    def write(text: str) -> Path:
        path = tmp_path / "inventory.yaml"
        path.write_text(text)
        return path

    return write
