"""
Type-safe project configuration.

Embargo.toml is optional and every key in it is optional: whatever the user
leaves out is filled in from the built-in defaults, field by field. Only
values of the wrong shape (a number where a tool name is expected, a string
where a list of flags is expected, a tool embargo cannot drive) are rejected.

Example Embargo.toml:

    compiler = "gcc"
    flags = ["-Wall", "-Wextra", "-std=c++20"]
    release-flags = ["-O3"]
    linker-flags = ["-lm"]
    linter-checks = ["clang-analyzer-*", "bugprone-*"]
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .. import PROJECT_CONFIG_FILE
from ..errors import ConfigError
from ..toolchain.tools import ToolId, ToolKind, parse_tool

logger = logging.getLogger(__name__)

COMPILER_KEY = "compiler"
DEBUGGER_KEY = "debugger"
LINTER_KEY = "linter"
FLAGS_KEY = "flags"
DEBUG_FLAGS_KEY = "debug-flags"
RELEASE_FLAGS_KEY = "release-flags"
LINKER_FLAGS_KEY = "linker-flags"
LINTER_CHECKS_KEY = "linter-checks"

DEFAULT_COMPILER = "clang"
DEFAULT_DEBUGGER = "lldb"
DEFAULT_LINTER = "clang-tidy"
DEFAULT_FLAGS = ("-Wall", "-Wextra", "-pedantic")
DEFAULT_DEBUG_FLAGS = ("-g",)
DEFAULT_RELEASE_FLAGS = ("-O2",)
DEFAULT_LINKER_FLAGS: tuple[str, ...] = ()
DEFAULT_LINTER_CHECKS = ("clang-analyzer-*",)

_TOOL_KEYS = {
    COMPILER_KEY: (ToolKind.COMPILER, DEFAULT_COMPILER),
    DEBUGGER_KEY: (ToolKind.DEBUGGER, DEFAULT_DEBUGGER),
    LINTER_KEY: (ToolKind.LINTER, DEFAULT_LINTER),
}

_LIST_KEYS = {
    FLAGS_KEY: DEFAULT_FLAGS,
    DEBUG_FLAGS_KEY: DEFAULT_DEBUG_FLAGS,
    RELEASE_FLAGS_KEY: DEFAULT_RELEASE_FLAGS,
    LINKER_FLAGS_KEY: DEFAULT_LINKER_FLAGS,
    LINTER_CHECKS_KEY: DEFAULT_LINTER_CHECKS,
}

KNOWN_KEYS = frozenset(_TOOL_KEYS) | frozenset(_LIST_KEYS)


@dataclass(frozen=True)
class EmbargoConfig:
    """
    Fully resolved configuration for one embargo invocation.

    Attributes:
        compiler: Compiler used for every translation unit (and linking)
        debugger: Debugger launched by `embargo debug`
        linter: Linter run by `embargo lint`
        flags: Flags passed to every compile, both profiles
        debug_flags: Flags appended for the debug profile
        release_flags: Flags appended for the release profile
        linker_flags: Flags passed to the link step
        linter_checks: Check globs passed to the linter
    """

    compiler: ToolId = field(default_factory=lambda: parse_tool(DEFAULT_COMPILER, ToolKind.COMPILER))
    debugger: ToolId = field(default_factory=lambda: parse_tool(DEFAULT_DEBUGGER, ToolKind.DEBUGGER))
    linter: ToolId = field(default_factory=lambda: parse_tool(DEFAULT_LINTER, ToolKind.LINTER))
    flags: tuple[str, ...] = DEFAULT_FLAGS
    debug_flags: tuple[str, ...] = DEFAULT_DEBUG_FLAGS
    release_flags: tuple[str, ...] = DEFAULT_RELEASE_FLAGS
    linker_flags: tuple[str, ...] = DEFAULT_LINKER_FLAGS
    linter_checks: tuple[str, ...] = DEFAULT_LINTER_CHECKS

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to Embargo.toml key names.

        resolve(config.to_dict()) == config for every resolved config.
        """
        return {
            COMPILER_KEY: self.compiler.name,
            DEBUGGER_KEY: self.debugger.name,
            LINTER_KEY: self.linter.name,
            FLAGS_KEY: list(self.flags),
            DEBUG_FLAGS_KEY: list(self.debug_flags),
            RELEASE_FLAGS_KEY: list(self.release_flags),
            LINKER_FLAGS_KEY: list(self.linker_flags),
            LINTER_CHECKS_KEY: list(self.linter_checks),
        }


def _read_tool(user_config: Mapping[str, Any], key: str) -> ToolId:
    kind, default = _TOOL_KEYS[key]
    value = user_config.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} value must be a non-empty string")
    try:
        return parse_tool(value, kind)
    except ConfigError as e:
        raise ConfigError(f"{key}: {e}") from e


def _read_string_list(user_config: Mapping[str, Any], key: str) -> tuple[str, ...]:
    if key not in user_config:
        return _LIST_KEYS[key]
    value = user_config[key]

    # The first Embargo.toml format stored the checks as one comma-joined string.
    if key == LINTER_CHECKS_KEY and isinstance(value, str):
        return tuple(check.strip() for check in value.split(",") if check.strip())

    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} value must be an array of strings")
    return tuple(value)


def resolve(user_config: Optional[Mapping[str, Any]] = None, strict: bool = False) -> EmbargoConfig:
    """Complete a partial user configuration with the built-in defaults.

    Args:
        user_config: Parsed Embargo.toml table, or None when there is no file
        strict: Reject unknown keys instead of ignoring them

    Returns:
        The resolved, immutable configuration

    Raises:
        ConfigError: On a malformed value (never on a missing one)
    """
    if user_config is None:
        user_config = {}
    if not isinstance(user_config, Mapping):
        raise ConfigError("configuration must be a table of keys and values")

    unknown = sorted(set(user_config) - KNOWN_KEYS)
    if unknown:
        if strict:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")
        for key in unknown:
            logger.warning(f"Ignoring unknown configuration key '{key}'")

    return EmbargoConfig(
        compiler=_read_tool(user_config, COMPILER_KEY),
        debugger=_read_tool(user_config, DEBUGGER_KEY),
        linter=_read_tool(user_config, LINTER_KEY),
        flags=_read_string_list(user_config, FLAGS_KEY),
        debug_flags=_read_string_list(user_config, DEBUG_FLAGS_KEY),
        release_flags=_read_string_list(user_config, RELEASE_FLAGS_KEY),
        linker_flags=_read_string_list(user_config, LINKER_FLAGS_KEY),
        linter_checks=_read_string_list(user_config, LINTER_CHECKS_KEY),
    )


def config_path(project_dir: Path) -> Path:
    return project_dir / PROJECT_CONFIG_FILE


def load_user_config(project_dir: Path) -> Optional[dict[str, Any]]:
    """Read Embargo.toml from the project root.

    Returns:
        The parsed table, or None when the project has no Embargo.toml

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    path = config_path(project_dir)
    if not path.is_file():
        logger.debug(f"No {PROJECT_CONFIG_FILE} in {project_dir}, using defaults")
        return None
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"can't parse {PROJECT_CONFIG_FILE}: {e}") from e
    except OSError as e:
        raise ConfigError(f"can't read {PROJECT_CONFIG_FILE}: {e}") from e


def strict_mode_from_env() -> bool:
    return os.environ.get("EMBARGO_STRICT_CONFIG") == "1"


def load_config(project_dir: Path, strict: Optional[bool] = None) -> EmbargoConfig:
    """Load and resolve the configuration of a project.

    Args:
        project_dir: Project root
        strict: Reject unknown keys; defaults to EMBARGO_STRICT_CONFIG=1
    """
    if strict is None:
        strict = strict_mode_from_env()
    return resolve(load_user_config(project_dir), strict=strict)
