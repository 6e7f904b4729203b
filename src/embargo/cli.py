"""
Command-line interface for embargo.

    embargo build              # Debug build into build/debug/app
    embargo release-run        # Release build, then run it
    embargo -C path/to/proj lint
    embargo -j 4 --verbose build
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from . import __version__
from .dispatcher import COMMAND_ALIASES, COMMAND_HELP, Command, CommandDispatcher
from .errors import EXIT_INTERRUPTED
from .output import init_timer, set_verbose

HELP_TOKEN = "help"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%H:%M:%S"


@dataclass
class CliArgs:
    """Parsed command line."""

    command: str
    project_dir: Path
    verbose: bool = False
    strict_config: bool = False
    jobs: Optional[int] = None


def _positive_int(value: str) -> int:
    try:
        jobs = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid job count: {value!r}")
    if jobs < 1:
        raise argparse.ArgumentTypeError(f"job count must be at least 1, got {jobs}")
    return jobs


def _commands_epilog() -> str:
    lines = ["commands:"]
    for command, text in COMMAND_HELP.items():
        lines.append(f"  {command.value:<16} {text}")
    lines.append(f"  {HELP_TOKEN:<16} Show this help message")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embargo",
        description="Build, run, debug and lint small C/C++ projects.",
        epilog=_commands_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        metavar="COMMAND",
        choices=[c.value for c in Command] + list(COMMAND_ALIASES) + [HELP_TOKEN],
        help="Command to run (see below)",
    )
    parser.add_argument(
        "-C",
        "--directory",
        dest="project_dir",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--strict-config",
        action="store_true",
        help="Fail on unknown keys in Embargo.toml (also EMBARGO_STRICT_CONFIG=1)",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=None,
        help="Parallel compile jobs (default: EMBARGO_JOBS or CPU count)",
    )
    parser.add_argument("--version", action="version", version=f"embargo {__version__}")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> CliArgs:
    args = build_parser().parse_args(argv)
    return CliArgs(
        command=args.command,
        project_dir=args.project_dir,
        verbose=args.verbose,
        strict_config=args.strict_config,
        jobs=args.jobs,
    )


def setup_logging(verbose: bool = False) -> None:
    """Send diagnostic logging to stderr; DEBUG and up when verbose, WARNING otherwise."""
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(console_handler)


def run(args: CliArgs, console: Optional[Console] = None) -> int:
    """Execute a parsed command line and return the exit status."""
    console = console if console is not None else Console()
    command = Command.from_token(args.command)

    init_timer()
    set_verbose(args.verbose)

    dispatcher = CommandDispatcher(
        args.project_dir.resolve(),
        jobs=args.jobs,
        strict=True if args.strict_config else None,
    )
    exit_code = dispatcher.dispatch(command)

    if exit_code == EXIT_INTERRUPTED and dispatcher.error is None and not command.hands_over_terminal:
        console.print(f"[bold yellow]✗ {command} interrupted[/bold yellow]")
    elif dispatcher.error is not None:
        console.print(f"[bold red]✗ {command} failed[/bold red] (exit code {exit_code})")
    elif not command.hands_over_terminal:
        console.print(f"[bold green]✓ {command} successful[/bold green]")
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point of the `embargo` console script."""
    args = parse_args(argv)
    if args.command == HELP_TOKEN:
        build_parser().print_help()
        sys.exit(0)

    setup_logging(args.verbose)
    try:
        exit_code = run(args)
    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Interrupted\033[0m")
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
