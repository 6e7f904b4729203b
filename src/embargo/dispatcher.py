"""
Command dispatch - maps a command token to pipeline and invoker calls.

Every command ends in an exit status:

    build, release-build, lint, clangd-config, clean, init, show-config
        0 on success, the error's exit code otherwise
    run, release-run, debug
        the exit status of the program (or debugger) once the build
        succeeded, the build error's exit code otherwise

run, release-run and debug always go through the build first, so they never
start an executable that is older than its sources.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .build.build_profiles import BuildProfile
from .build.orchestrator import BuildArtifact, BuildPipeline
from .commands.clangd_config import write_clangd_config
from .commands.clean import clean_project
from .commands.init import init_project
from .commands.lint import run_lint
from .commands.show_config import show_config
from .config.embargo_config import EmbargoConfig, load_config
from .errors import EXIT_INTERRUPTED, EmbargoError
from .output import log, log_error
from .toolchain.invoker import ToolchainInvoker
from .toolchain.models import ToolInvocation
from .toolchain.tools import debug_invocation

logger = logging.getLogger(__name__)


class Command(Enum):
    """Commands understood by `embargo <command>`."""

    INIT = "init"
    BUILD = "build"
    RELEASE_BUILD = "release-build"
    RUN = "run"
    RELEASE_RUN = "release-run"
    DEBUG = "debug"
    LINT = "lint"
    CLANGD_CONFIG = "clangd-config"
    CLEAN = "clean"
    SHOW_CONFIG = "show-config"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str) -> "Command":
        """Parse a command token, accepting aliases.

        Raises:
            ValueError: If the token is not a command
        """
        if token in COMMAND_ALIASES:
            return COMMAND_ALIASES[token]
        return cls(token)

    @property
    def hands_over_terminal(self) -> bool:
        """The exit status belongs to a program embargo started, not to embargo."""
        return self in (Command.RUN, Command.RELEASE_RUN, Command.DEBUG)


COMMAND_ALIASES = {"config": Command.SHOW_CONFIG}

COMMAND_HELP = {
    Command.BUILD: "Build the app in debug mode",
    Command.RELEASE_BUILD: "Build the app in release mode",
    Command.RUN: "Build the app in debug mode and run it",
    Command.RELEASE_RUN: "Build the app in release mode and run it",
    Command.DEBUG: "Build the app in debug mode and open it with the debugger",
    Command.LINT: "Run the linter on your project to find common mistakes",
    Command.INIT: "Create default files to start working on your project",
    Command.SHOW_CONFIG: "Show embargo configuration as defined in Embargo.toml (alias: config)",
    Command.CLANGD_CONFIG: "Generate compile_flags.txt and compile_commands.json for clangd",
    Command.CLEAN: "Remove the build directory",
}

_PROFILES = {
    Command.BUILD: BuildProfile.DEBUG,
    Command.RUN: BuildProfile.DEBUG,
    Command.DEBUG: BuildProfile.DEBUG,
    Command.RELEASE_BUILD: BuildProfile.RELEASE,
    Command.RELEASE_RUN: BuildProfile.RELEASE,
}


def exit_status(returncode: int) -> int:
    """Process exit status for a child's return code (signal N -> 128 + N)."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode & 0xFF


class CommandDispatcher:
    """Runs one command against one project directory.

    Attributes:
        error: The error that ended the last dispatch, if any
    """

    def __init__(
        self,
        project_dir: Path,
        invoker: Optional[ToolchainInvoker] = None,
        jobs: Optional[int] = None,
        strict: Optional[bool] = None,
    ):
        """
        Initialize command dispatcher.

        Args:
            project_dir: Project root; never changed with os.chdir
            invoker: Invoker for every tool call
            jobs: Parallel compile jobs (default: EMBARGO_JOBS or CPU count)
            strict: Reject unknown Embargo.toml keys (default: EMBARGO_STRICT_CONFIG)
        """
        self.project_dir = project_dir
        self.invoker = invoker or ToolchainInvoker()
        self.pipeline = BuildPipeline(self.invoker, jobs=jobs)
        self.strict = strict
        self.error: Optional[EmbargoError] = None
        self._config: Optional[EmbargoConfig] = None

    @property
    def config(self) -> EmbargoConfig:
        """Configuration, loaded on first use and fixed for the rest of the command."""
        if self._config is None:
            self._config = load_config(self.project_dir, strict=self.strict)
        return self._config

    def dispatch(self, command: Command) -> int:
        """
        Run a command.

        Returns:
            Process exit status
        """
        self.error = None
        logger.debug(f"Dispatching '{command}' in {self.project_dir}")
        try:
            return self._dispatch(command)
        except EmbargoError as e:
            self.error = e
            log_error(str(e))
            return e.exit_code
        except KeyboardInterrupt:
            log_error("Interrupted")
            return EXIT_INTERRUPTED

    def _dispatch(self, command: Command) -> int:
        if command is Command.INIT:
            init_project(self.project_dir)
            return 0
        if command is Command.CLEAN:
            clean_project(self.project_dir)
            return 0
        if command is Command.SHOW_CONFIG:
            show_config(self.config)
            return 0
        if command is Command.CLANGD_CONFIG:
            write_clangd_config(self.project_dir, self.config)
            return 0
        if command is Command.LINT:
            run_lint(self.project_dir, self.config, self.invoker)
            return 0

        artifact = self.build(_PROFILES[command])
        if command in (Command.BUILD, Command.RELEASE_BUILD):
            return 0
        if command is Command.DEBUG:
            return self._debug(artifact)
        return self._run(artifact)

    def build(self, profile: BuildProfile) -> BuildArtifact:
        return self.pipeline.build(self.config, profile, self.project_dir)

    def _run(self, artifact: BuildArtifact) -> int:
        log(f"Running {artifact.path.relative_to(self.project_dir).as_posix()}")
        invocation = ToolInvocation(str(artifact.path), (), self.project_dir)
        result = self.invoker.invoke(invocation, interactive=True, check=False)
        logger.debug(f"Program exited with {result.exit_code}")
        return exit_status(result.exit_code)

    def _debug(self, artifact: BuildArtifact) -> int:
        debugger = self.config.debugger
        log(f"Starting {debugger.name}")
        invocation = debug_invocation(debugger, str(artifact.path), self.project_dir)
        result = self.invoker.invoke(invocation, interactive=True, check=False)
        return exit_status(result.exit_code)
