"""Cleanup commands and the bash payload pushed to every agent."""

from __future__ import annotations

# Every find is bounded so a wedged filesystem cannot hang the job.
FIND_COMMANDS: tuple[str, ...] = (
    "timeout 1800 find /home/jenkins/.m2 -mtime +1 -type d -name '*-SNAPSHOT' -prune",
    "timeout 1800 find /tmp -maxdepth 1 -mtime +1 -type d "
    "\\( -name 'tmp[_0-9a-zA-Z]*' -o -name 'npm-*' \\) -prune",
    "timeout 1800 find /tmp/phantomjs -maxdepth 1 -mtime +1 -name 'phantomjs-*' -prune",
)

DELETE_SUFFIX = " -exec timeout 10 rm -rf {} \\;"

REMOTE_SCRIPT_TEMPLATE = "/tmp/cleanup-script.shXXX"

_PREAMBLE = """\
#!/bin/bash
# Generated by agent-cleanup

# delete self after script is run
function cleanup_on() {
  [ -d "${TMPPATH}" ] && rm -rf "${TMPPATH}"
  rm -f "$0"
}
trap cleanup_on EXIT
set -x
# if timeout is not installed, then temporarily create one based on perl
if ! type -P timeout; then
  export TMPPATH="$(mktemp -d)"
  cat > "${TMPPATH}/timeout" <<'EOF'
#!/bin/bash
perl -e 'alarm shift; exec @ARGV' "$@"
EOF
  chmod 755 "${TMPPATH}/timeout"
  export PATH="${TMPPATH}:${PATH}"
fi
"""


def resolve_dry_run(value: str | bool | None) -> bool:
    """Interpret a DRY_RUN value.

    Only the exact string ``"false"`` turns dry-run off. Anything else,
    including an unset variable, keeps it on.
    """
    if isinstance(value, bool):
        return value
    return value != "false"


def build_commands(dry_run: bool) -> list[str]:
    """Return the find commands, with deletion appended outside of dry-run."""
    if dry_run:
        return list(FIND_COMMANDS)
    return [cmd + DELETE_SUFFIX for cmd in FIND_COMMANDS]


def build_script(commands: list[str]) -> str:
    """Render the self-deleting bash script that runs ``commands``."""
    return _PREAMBLE + "\n".join(commands)
