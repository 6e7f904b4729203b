"""Value objects passed between the pipeline and the toolchain invoker."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ToolInvocation:
    """One subprocess call: built fresh for every call, never reused.

    Attributes:
        executable: Tool name or path (resolved on PATH at invoke time)
        args: Argument vector, excluding the executable itself
        cwd: Working directory of the child process
    """

    executable: str
    args: tuple[str, ...]
    cwd: Path

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def format(self) -> str:
        return " ".join(self.argv)


@dataclass
class ExecutionResult:
    """Outcome of a finished child process.

    stdout/stderr are None when the child was attached to the terminal.
    """

    exit_code: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    duration: float = field(default=0.0, compare=False)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return "".join(part for part in (self.stdout, self.stderr) if part)
