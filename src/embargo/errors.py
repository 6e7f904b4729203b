"""Exception hierarchy shared by every embargo component.

Each error carries the process exit code the CLI should report when the error
reaches the top level, so the dispatcher never has to guess how to map a
failure to a status.
"""

from typing import Optional

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 3
EXIT_IO_ERROR = 4
EXIT_CANNOT_EXECUTE = 126
EXIT_TOOL_NOT_FOUND = 127
EXIT_INTERRUPTED = 130


class EmbargoError(Exception):
    """Base class for all orchestrator errors."""

    exit_code: int = EXIT_FAILURE


class ConfigError(EmbargoError):
    """Raised when Embargo.toml contains a structurally malformed value."""

    exit_code = EXIT_CONFIG_ERROR


class ProjectIOError(EmbargoError, OSError):
    """Raised when the project tree cannot be read or the build dir written."""

    exit_code = EXIT_IO_ERROR


class ProjectExistsError(EmbargoError):
    """Raised by `embargo init` in a directory that already has an Embargo.toml."""


class ToolNotFoundError(EmbargoError):
    """Raised when a configured tool cannot be resolved on PATH."""

    exit_code = EXIT_TOOL_NOT_FOUND

    def __init__(self, tool: str):
        super().__init__(f"'{tool}' was not found on PATH")
        self.tool = tool


class ToolLaunchError(EmbargoError):
    """Raised when a resolved executable cannot be started (bad format, no permission)."""

    exit_code = EXIT_CANNOT_EXECUTE

    def __init__(self, tool: str, reason: str):
        super().__init__(f"can't execute {tool}: {reason}")
        self.tool = tool


class ToolExecutionError(EmbargoError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(
        self,
        tool: str,
        exit_code: int,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(f"{tool} exited with status {exit_code}")
        self.tool = tool
        # A child killed by a signal reports a negative code; keep the process
        # exit status in the 1-255 range.
        self.exit_code = exit_code if 0 < exit_code < 256 else EXIT_FAILURE
        self.returncode = exit_code
        self.stdout = stdout
        self.stderr = stderr

    @property
    def diagnostics(self) -> str:
        """Captured tool output, stdout first."""
        return "".join(part for part in (self.stdout, self.stderr) if part)


class BuildError(EmbargoError):
    """Raised when a compile or link step fails.

    Wraps the first failing ToolExecutionError (if any) and reuses its exit
    code so `embargo build` exits with the compiler's own status.
    """

    def __init__(self, step: str, message: str, cause: Optional[ToolExecutionError] = None):
        super().__init__(f"{step} failed: {message}")
        self.step = step
        self.cause = cause
        if cause is not None:
            self.exit_code = cause.exit_code
