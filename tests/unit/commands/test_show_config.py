"""Tests for the show-config rendering."""

from rich.console import Console

from embargo.commands.show_config import show_config
from embargo.config.embargo_config import resolve


def render(config) -> str:
    console = Console(record=True, width=120, color_system=None)
    show_config(config, console=console)
    return console.export_text()


def test_defaults_are_shown():
    text = render(resolve(None))

    assert "Embargo is configured as follows" in text
    assert "clang" in text
    assert "lldb" in text
    assert "clang-tidy" in text
    assert "-Wall -Wextra -pedantic" in text
    assert "clang-analyzer-*" in text


def test_empty_list_shown_as_none():
    text = render(resolve(None))
    linker_line = next(line for line in text.splitlines() if line.strip().startswith("Linker flags"))
    assert "(none)" in linker_line


def test_user_values_are_shown():
    text = render(resolve({"compiler": "gcc-13", "release-flags": ["-O3", "-flto"]}))

    assert "gcc-13" in text
    assert "-O3 -flto" in text
