"""
Toolchain invoker - the only place embargo starts child processes.

Three output modes cover every tool the pipeline runs:

- capture (compiler, linker): stdout/stderr collected and returned so the
  pipeline can show a failing unit's diagnostics in full, in source order,
  even when several compilers run at once;
- stream (linter): every line is echoed as soon as it is produced and also
  collected, so findings can be counted afterwards;
- interactive (the built program, the debugger): the child inherits the
  terminal and embargo stays out of the way until it exits.

An interrupt while a child runs terminates the child's whole process tree
before the KeyboardInterrupt propagates.
"""

import logging
import signal
import subprocess
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from ..errors import ToolExecutionError, ToolLaunchError, ToolNotFoundError
from ..interrupt_utils import terminate_process_tree
from ..subprocess_utils import resolve_executable, safe_popen
from .models import ExecutionResult, ToolInvocation

logger = logging.getLogger(__name__)


@contextmanager
def _terminal_handed_over() -> Iterator[None]:
    """Ignore SIGINT in embargo while an interactive child owns the terminal.

    Ctrl+C is delivered to the whole foreground process group; the debugger
    (or the program) decides what it means and embargo waits for it to exit.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class ToolchainInvoker:
    """Runs ToolInvocations and turns their exit status into results or errors.

    Args:
        echo: Callback receiving each line in stream mode (defaults to the
            embargo output module's verbatim writer)
    """

    def __init__(self, echo: Optional[Callable[[str], None]] = None):
        if echo is None:
            from ..output import log_tool_output

            echo = log_tool_output
        self._echo = echo

    def invoke(
        self,
        invocation: ToolInvocation,
        *,
        interactive: bool = False,
        stream: bool = False,
        check: bool = True,
    ) -> ExecutionResult:
        """Run one tool to completion.

        Args:
            invocation: What to run and where
            interactive: Attach the child to the terminal (no capture)
            stream: Echo output line by line while collecting it
            check: Raise ToolExecutionError on a non-zero exit status

        Returns:
            ExecutionResult with the exit code and any collected output

        Raises:
            ToolNotFoundError: If the executable cannot be resolved
            ToolLaunchError: If the executable exists but cannot be started
            ToolExecutionError: If check is set and the tool fails
        """
        executable = resolve_executable(invocation.executable, invocation.cwd)
        if executable is None:
            raise ToolNotFoundError(invocation.executable)

        argv = [executable, *invocation.args]
        logger.debug(f"Running: {invocation.format()} (cwd={invocation.cwd})")
        start = time.time()

        if interactive:
            result = self._run_interactive(argv, invocation)
        elif stream:
            result = self._run_streaming(argv, invocation)
        else:
            result = self._run_captured(argv, invocation)

        result.duration = time.time() - start
        logger.debug(f"{invocation.executable} exited with {result.exit_code} in {result.duration:.2f}s")

        if check and result.exit_code != 0:
            raise ToolExecutionError(invocation.executable, result.exit_code, result.stdout, result.stderr)
        return result

    def _spawn(self, argv: list[str], invocation: ToolInvocation, **kwargs) -> subprocess.Popen:
        try:
            return safe_popen(argv, cwd=invocation.cwd, **kwargs)
        except OSError as e:
            # Resolved on PATH but rejected by exec (format, permissions).
            raise ToolLaunchError(invocation.executable, e.strerror or str(e)) from e

    def _wait(self, proc: subprocess.Popen) -> None:
        try:
            proc.wait()
        except KeyboardInterrupt:
            logger.debug(f"Interrupted, terminating {proc.args[0]} (pid {proc.pid})")
            terminate_process_tree(proc.pid)
            proc.wait()
            raise

    def _run_captured(self, argv: list[str], invocation: ToolInvocation) -> ExecutionResult:
        proc = self._spawn(
            argv,
            invocation,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        try:
            stdout, stderr = proc.communicate()
        except KeyboardInterrupt:
            terminate_process_tree(proc.pid)
            proc.communicate()
            raise
        return ExecutionResult(exit_code=proc.returncode, stdout=stdout, stderr=stderr)

    def _run_streaming(self, argv: list[str], invocation: ToolInvocation) -> ExecutionResult:
        proc = self._spawn(
            argv,
            invocation,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
        lines: list[str] = []
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                lines.append(line)
                self._echo(line)
            proc.stdout.close()
        except KeyboardInterrupt:
            terminate_process_tree(proc.pid)
            proc.wait()
            raise
        self._wait(proc)
        return ExecutionResult(exit_code=proc.returncode, stdout="".join(lines), stderr="")

    def _run_interactive(self, argv: list[str], invocation: ToolInvocation) -> ExecutionResult:
        # Spawn first: an ignored SIGINT would be inherited across exec.
        proc = self._spawn(argv, invocation, interactive=True)
        with _terminal_handed_over():
            self._wait(proc)
        return ExecutionResult(exit_code=proc.returncode)
