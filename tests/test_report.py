"""Tests for console report formatting."""

import io

from agent_cleanup.report import (
    SEPARATOR,
    Console,
    format_cancelled,
    format_finished,
    format_report,
    format_waiting,
)


def test_format_report_indents_output() -> None:
    report = format_report("build-01", True, ["SCRIPT:", "line one\nline two"])

    assert report.split("\n") == [
        SEPARATOR,
        "SLAVE: build-01",
        "DRYRUN: true",
        "EXECUTED ON SLAVE:",
        "    SCRIPT:",
        "    line one",
        "    line two",
        SEPARATOR,
    ]


def test_format_report_lowercases_flag() -> None:
    assert "DRYRUN: false" in format_report("a", False, [])


def test_format_waiting_lists_names() -> None:
    assert format_waiting(["a", "b"]) == "Waiting on 2 agents:\n    a\n    b"


def test_format_finished() -> None:
    assert format_finished() == f"{SEPARATOR}\nCLEANUP FINISHED RUNNING.\n{SEPARATOR}"


def test_format_cancelled() -> None:
    assert format_cancelled(["a"]) == "WARNING: 1 agent(s) cancelled:\n    a"


async def test_console_writes_whole_blocks() -> None:
    stream = io.StringIO()
    console = Console(stream)

    await console.write("one\ntwo")
    console.write_now("three")

    assert stream.getvalue() == "one\ntwo\nthree\n"
