"""Tests for cleanup command and payload generation."""

import pytest

from agent_cleanup.script import (
    DELETE_SUFFIX,
    FIND_COMMANDS,
    build_commands,
    build_script,
    resolve_dry_run,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("false", False),
        ("False", True),
        ("true", True),
        ("", True),
        (None, True),
        ("no", True),
        (False, False),
        (True, True),
    ],
)
def test_resolve_dry_run(value, expected: bool) -> None:
    assert resolve_dry_run(value) is expected


def test_dry_run_commands_only_find() -> None:
    commands = build_commands(dry_run=True)

    assert commands == list(FIND_COMMANDS)
    assert all("rm -rf" not in cmd for cmd in commands)


def test_delete_commands_append_bounded_rm() -> None:
    commands = build_commands(dry_run=False)

    assert len(commands) == 3
    for cmd in commands:
        assert cmd.startswith("timeout 1800 find ")
        assert cmd.endswith(" -exec timeout 10 rm -rf {} \\;")
    assert commands[0] == FIND_COMMANDS[0] + DELETE_SUFFIX


def test_tmp_find_groups_names_with_escaped_parens() -> None:
    tmp_cmd = FIND_COMMANDS[1]

    assert "\\( -name 'tmp[_0-9a-zA-Z]*' -o -name 'npm-*' \\)" in tmp_cmd


def test_script_layout() -> None:
    commands = build_commands(dry_run=True)

    script = build_script(commands)
    lines = script.split("\n")

    assert lines[0] == "#!/bin/bash"
    assert "trap cleanup_on EXIT" in lines
    assert "set -x" in lines
    assert '  rm -f "$0"' in lines
    assert lines[-3:] == commands


def test_script_has_timeout_shim() -> None:
    script = build_script([])

    assert "if ! type -P timeout; then" in script
    assert "perl -e 'alarm shift; exec @ARGV' \"$@\"" in script
    assert 'export PATH="${TMPPATH}:${PATH}"' in script
