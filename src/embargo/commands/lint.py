"""
Lint command - runs the configured linter over the whole project.

All sources and headers go to a single linter call, with the checks from
`linter-checks` and the same flags a debug build uses. The linter's output
is streamed as it is produced; afterwards the `warning:` and `error:`
findings are counted for the summary line.

Findings are not a failure: `embargo lint` only fails when the linter can't
be started or dies from a signal.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..build.build_profiles import BuildProfile, get_compile_flags
from ..build.source_scanner import SourceScanner
from ..config.embargo_config import EmbargoConfig
from ..errors import ToolExecutionError
from ..output import log_phase, log_success, log_warning
from ..toolchain.invoker import ToolchainInvoker
from ..toolchain.tools import lint_invocation

logger = logging.getLogger(__name__)

# file:line:col: warning: message [check-name]
_FINDING_PATTERN = re.compile(r":\d+:\d+: (?P<severity>warning|error): ")


@dataclass
class LintReport:
    """Summary of one linter run."""

    files: List[str] = field(default_factory=list)
    warnings: int = 0
    errors: int = 0
    exit_code: int = 0

    @property
    def findings(self) -> int:
        return self.warnings + self.errors


def count_findings(output: str) -> Tuple[int, int]:
    """Count (warnings, errors) in linter output."""
    warnings = errors = 0
    for line in output.splitlines():
        m = _FINDING_PATTERN.search(line)
        if m is None:
            continue
        if m.group("severity") == "warning":
            warnings += 1
        else:
            errors += 1
    return warnings, errors


def run_lint(project_dir: Path, config: EmbargoConfig, invoker: Optional[ToolchainInvoker] = None) -> LintReport:
    """
    Lint every source and header of the project.

    Args:
        project_dir: Project root
        config: Resolved configuration
        invoker: Invoker for the linter call

    Returns:
        LintReport with the finding counts

    Raises:
        ToolNotFoundError: If the linter is not on PATH
        ToolExecutionError: If the linter was killed by a signal
        ProjectIOError: If the project can't be scanned
    """
    invoker = invoker or ToolchainInvoker()
    scanner = SourceScanner(project_dir)
    files = scanner.scan().code_paths()
    if not files:
        log_warning("No source files to lint")
        return LintReport()

    invocation = lint_invocation(
        config.linter,
        files,
        config.linter_checks,
        get_compile_flags(config, BuildProfile.DEBUG),
        scanner.include_dirs(),
        project_dir,
    )
    log_phase(1, 1, f"Linting {len(files)} files with {config.linter.name}...")
    result = invoker.invoke(invocation, stream=True, check=False)

    if result.exit_code < 0:
        raise ToolExecutionError(config.linter.name, result.exit_code, result.stdout, result.stderr)
    if result.exit_code != 0:
        logger.debug(f"{config.linter.name} exited with {result.exit_code}")

    warnings, errors = count_findings(result.output)
    report = LintReport(files=files, warnings=warnings, errors=errors, exit_code=result.exit_code)
    if report.findings:
        log_warning(f"{report.findings} findings ({warnings} warnings, {errors} errors)")
    else:
        log_success("No findings")
    return report
