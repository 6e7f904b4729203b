"""
clangd configuration - compile_flags.txt and compile_commands.json.

compile_flags.txt is what clangd falls back to for files it has no entry
for (headers, new files): one argument per line, include directories first,
then the debug profile's compile flags.

compile_commands.json lists the exact command `embargo build` runs for each
translation unit, so clangd and clang-tidy see the same flags as the
compiler.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from ..build.build_profiles import BuildProfile, get_compile_flags, profile_dir
from ..build.source_scanner import INCLUDE_DIR_NAMES, SourceScanner
from ..config.embargo_config import EmbargoConfig, load_config
from ..errors import ProjectIOError
from ..output import log_detail, log_success
from ..toolchain.tools import compile_invocation, include_flags

logger = logging.getLogger(__name__)

COMPILE_FLAGS_FILE = "compile_flags.txt"
COMPILE_COMMANDS_FILE = "compile_commands.json"


@dataclass(frozen=True)
class ClangdConfigFiles:
    """Files written by write_clangd_config()."""

    compile_flags: Path
    compile_commands: Path
    entries: int


def compile_flags_lines(config: EmbargoConfig) -> List[str]:
    """Lines of compile_flags.txt.

    Both conventional include directories are listed even if one is missing,
    so a header directory created later is picked up without regenerating.
    """
    return [*include_flags(INCLUDE_DIR_NAMES), *get_compile_flags(config, BuildProfile.DEBUG)]


def compile_commands(config: EmbargoConfig, project_dir: Path) -> List[dict[str, Any]]:
    """One compilation database entry per source unit (debug profile)."""
    scanner = SourceScanner(project_dir)
    sources = scanner.scan()
    include_dirs = scanner.include_dirs()
    flags = get_compile_flags(config, BuildProfile.DEBUG)
    out_dir = profile_dir(project_dir, BuildProfile.DEBUG)
    directory = str(project_dir.resolve())

    entries = []
    for unit in sources.units:
        output = unit.object_in(out_dir).relative_to(project_dir).as_posix()
        invocation = compile_invocation(config.compiler, str(unit.path), output, flags, include_dirs, project_dir)
        entries.append(
            {
                "directory": directory,
                "file": str(unit.path),
                "arguments": invocation.argv,
                "output": output,
            }
        )
    return entries


def write_clangd_config(project_dir: Path, config: Optional[EmbargoConfig] = None) -> ClangdConfigFiles:
    """
    Write compile_flags.txt and compile_commands.json to the project root.

    Args:
        project_dir: Project root
        config: Resolved configuration (None loads Embargo.toml)

    Returns:
        ClangdConfigFiles with the written paths

    Raises:
        ConfigError: If Embargo.toml is malformed
        ProjectIOError: If the project can't be scanned or the files written
    """
    if config is None:
        config = load_config(project_dir)

    flags_path = project_dir / COMPILE_FLAGS_FILE
    commands_path = project_dir / COMPILE_COMMANDS_FILE
    entries = compile_commands(config, project_dir)

    try:
        flags_path.write_text("".join(f"{line}\n" for line in compile_flags_lines(config)), encoding="utf-8")
        with open(commands_path, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise ProjectIOError(f"can't write clangd configuration: {e}") from e

    logger.debug(f"Wrote {len(entries)} compilation database entries")
    log_success(f"Wrote {COMPILE_FLAGS_FILE} and {COMPILE_COMMANDS_FILE}")
    log_detail(f"{len(entries)} translation units", verbose_only=True)
    return ClangdConfigFiles(compile_flags=flags_path, compile_commands=commands_path, entries=len(entries))
