"""show-config command - prints the resolved configuration."""

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..config.embargo_config import (
    COMPILER_KEY,
    DEBUG_FLAGS_KEY,
    DEBUGGER_KEY,
    FLAGS_KEY,
    LINKER_FLAGS_KEY,
    LINTER_CHECKS_KEY,
    LINTER_KEY,
    RELEASE_FLAGS_KEY,
    EmbargoConfig,
)

_ROWS = (
    ("Compiler", COMPILER_KEY),
    ("Debugger", DEBUGGER_KEY),
    ("Linter", LINTER_KEY),
    ("Flags", FLAGS_KEY),
    ("Debug flags", DEBUG_FLAGS_KEY),
    ("Release flags", RELEASE_FLAGS_KEY),
    ("Linker flags", LINKER_FLAGS_KEY),
    ("Linter checks", LINTER_CHECKS_KEY),
)


def _format_value(value: object) -> Text:
    if isinstance(value, str):
        return Text(value, style="bold cyan")
    assert isinstance(value, Sequence)
    if not value:
        return Text("(none)", style="dim")
    return Text(" ".join(value))


def render_config(config: EmbargoConfig) -> Table:
    """Build a two-column table (setting, value) of the configuration."""
    table = Table(
        title="Embargo is configured as follows",
        title_justify="left",
        show_header=False,
        show_edge=False,
        box=None,
        padding=(0, 2),
    )
    table.add_column("Setting", style="bold", no_wrap=True, min_width=16)
    table.add_column("Value")

    values = config.to_dict()
    for label, key in _ROWS:
        table.add_row(label, _format_value(values[key]))
    return table


def show_config(config: EmbargoConfig, console: Optional[Console] = None) -> None:
    """Print the configuration table; nothing is written to disk."""
    console = console if console is not None else Console()
    console.print(render_config(config))
