"""Mocks standing in for asyncssh connections."""

from unittest.mock import AsyncMock, MagicMock

REMOTE_PATH = "/tmp/cleanup-script.shAbc"


def fake_run(stdout: str | None = "", stderr: str | None = ""):
    """Build a ``conn.run`` side effect that answers each remote step."""

    def run(command, **kwargs):
        if command.startswith("mktemp"):
            return MagicMock(stdout=REMOTE_PATH + "\n", stderr="", exit_status=0)
        if command.startswith("cat >"):
            return MagicMock(stdout="", stderr="", exit_status=0)
        return MagicMock(stdout=stdout, stderr=stderr, exit_status=0)

    return run


def connect_cm(conn: AsyncMock) -> MagicMock:
    """Wrap a connection mock in an async context manager like asyncssh.connect."""
    cm = MagicMock()
    cm.__aenter__.return_value = conn
    cm.__aexit__.return_value = False
    return cm
