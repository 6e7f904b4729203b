"""
Centralized user-facing output for embargo.

Every line is prefixed with the elapsed time since launch in MM:SS.cc format
so a slow compile or link step is visible at a glance:

    00:00.01 PROFILE=debug COMPILER=clang
    00:00.02 [1/3] Scanning sources...
    00:00.02       3 source units, 2 headers
    00:00.85       [compile] src/main.cpp
    00:00.86       [compile] src/util.c (cached)

Diagnostic logging (debug traces, warnings about ignored config keys) goes
through the standard `logging` module instead; this module is only for the
progress a user reads in the terminal.

Usage:
    from embargo.output import log, log_phase, log_detail

    log_phase(1, 3, "Scanning sources...")
    log_detail("3 source units")
"""

import sys
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: TextIO = sys.stdout
_verbose: bool = False


def init_timer() -> None:
    """
    Initialize the program timer.

    Called from the CLI entry point; the first log call does it implicitly.
    """
    global _start_time
    _start_time = time.time()


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode.

    Args:
        verbose: If True, verbose_only messages are printed too.
    """
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Seconds since init_timer()."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    _output_stream.write(f"{format_timestamp()} {message}\n")
    _output_stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline phase as `[N/M] message`.

    Args:
        phase: Current phase number
        total: Total number of phases
        message: Phase description
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log an indented detail line.

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_file(action: str, filename: str, cached: bool = False, verbose_only: bool = False) -> None:
    """
    Log a per-file step as `[action] filename`.

    Args:
        action: What happened to the file (e.g. 'compile', 'lint')
        filename: Project-relative file name
        cached: If True, append "(cached)" - the object was up to date
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    suffix = " (cached)" if cached else ""
    _print(f"      [{action}] {filename}{suffix}")


def log_tool_output(text: str) -> None:
    """
    Write captured compiler/linker diagnostics verbatim.

    Tool output is shown in full and without timestamps so file:line:col
    references stay clickable in editors and terminals.
    """
    if not text:
        return
    _output_stream.write(text if text.endswith("\n") else text + "\n")
    _output_stream.flush()


def log_artifact_path(path: Path, verbose_only: bool = False) -> None:
    """Log the location of the final linked executable."""
    log_detail(f"Artifact: {path}", verbose_only=verbose_only)


def log_build_complete(build_time: float, verbose_only: bool = False) -> None:
    """
    Log build completion time.

    Args:
        build_time: Total build time in seconds
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"Build time: {build_time:.2f}s")


def log_error(message: str) -> None:
    _print(f"ERROR: {message}")


def log_warning(message: str) -> None:
    _print(f"WARNING: {message}")


def log_success(message: str) -> None:
    _print(message)


class TimedLogger:
    """
    Context manager that logs an operation and how long it took.

    Usage:
        with TimedLogger("Linking", phase=(3, 3)) as timed:
            timed.detail("2 object files")
        # logs "Done (0.12s)" on success, nothing on failure
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)
