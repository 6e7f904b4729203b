"""Tests for the timestamped output helpers."""

import re

import pytest

from embargo import output

TIMESTAMP = r"\d{2}:\d{2}\.\d{2}"


def test_format_timestamp():
    output.init_timer()
    assert re.fullmatch(TIMESTAMP, output.format_timestamp())


def test_log_phase(captured_output):
    output.log_phase(2, 3, "Compiling...")
    assert re.fullmatch(rf"{TIMESTAMP} \[2/3\] Compiling\.\.\.\n", captured_output.getvalue())


def test_log_file_cached(captured_output):
    output.log_file("compile", "src/main.cpp", cached=True)
    assert captured_output.getvalue().endswith("      [compile] src/main.cpp (cached)\n")


def test_verbose_only_messages_are_hidden(captured_output):
    output.log("hidden", verbose_only=True)
    output.log_detail("hidden too", verbose_only=True)
    assert captured_output.getvalue() == ""


def test_verbose_only_messages_shown_in_verbose_mode(captured_output):
    output.set_verbose(True)
    output.log("shown", verbose_only=True)
    assert "shown" in captured_output.getvalue()


def test_tool_output_is_verbatim(captured_output):
    output.log_tool_output("src/a.c:1:2: error: expected ';'")
    assert captured_output.getvalue() == "src/a.c:1:2: error: expected ';'\n"


def test_tool_output_empty_is_silent(captured_output):
    output.log_tool_output("")
    assert captured_output.getvalue() == ""


def test_timed_logger_reports_done(captured_output):
    with output.TimedLogger("Linking", phase=(3, 3)) as timed:
        timed.detail("2 objects")

    lines = captured_output.getvalue().splitlines()
    assert lines[0].endswith("[3/3] Linking...")
    assert lines[1].endswith("2 objects")
    assert re.search(r"Done \(\d+\.\d{2}s\)$", lines[2])


def test_timed_logger_silent_on_failure(captured_output):
    with pytest.raises(RuntimeError):
        with output.TimedLogger("Linking"):
            raise RuntimeError("link failed")

    assert "Done" not in captured_output.getvalue()
