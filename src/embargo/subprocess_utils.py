"""Subprocess wrappers used for every toolchain call.

Two kinds of children exist in embargo:

- batch tools (compiler, linker, linter) whose stdin must never be inherited,
  so a compiler waiting on input cannot steal keystrokes from the terminal;
- interactive programs (the built app, the debugger) which need the terminal
  for their whole lifetime.

Both are started with safe_popen(), which also applies the Windows flag that
keeps batch tools from flashing a console window.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional


def get_subprocess_creation_flags(interactive: bool = False) -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows batch tools: subprocess.CREATE_NO_WINDOW
        - Interactive children and other platforms: 0
    """
    if sys.platform == "win32" and not interactive:
        return subprocess.CREATE_NO_WINDOW
    return 0


def _apply_defaults(kwargs: dict[str, Any], interactive: bool) -> dict[str, Any]:
    default_flags = get_subprocess_creation_flags(interactive)

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    # Batch tools get stdin=DEVNULL unless the caller chose otherwise;
    # interactive children inherit the terminal.
    if not interactive and "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return kwargs


def safe_popen(cmd: list[str], interactive: bool = False, **kwargs: Any) -> subprocess.Popen:
    """Execute subprocess.Popen with platform-specific defaults.

    Args:
        cmd: Command and arguments (same as subprocess.Popen)
        interactive: Leave stdio attached to the terminal
        **kwargs: Additional arguments passed to subprocess.Popen

    Returns:
        The process handle, so callers can stream output or terminate the
        child on interrupt
    """
    return subprocess.Popen(cmd, **_apply_defaults(kwargs, interactive))


def resolve_executable(name: str, cwd: Optional[Path] = None) -> Optional[str]:
    """Resolve a tool name or path to an executable path.

    Names without a directory separator are looked up on PATH. Paths are
    resolved relative to cwd and must point to an executable file.

    Returns:
        The absolute executable path, or None when it cannot be found.
    """
    if Path(name).name != name:
        candidate = Path(name)
        if not candidate.is_absolute() and cwd is not None:
            candidate = cwd / candidate
        found = shutil.which(str(candidate))
        return str(Path(found).resolve()) if found else None
    return shutil.which(name)
