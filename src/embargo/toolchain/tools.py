"""Supported tool families and their argument-vector builders.

Tool names in Embargo.toml are free-form strings, but embargo only knows how
to drive a small, closed set of tool families. A configured name is mapped to
its family once, during config resolution, so an unsupported tool fails with a
ConfigError up front instead of producing a malformed subprocess call later.

Accepted names per family (an optional `-<version>` suffix, a directory and a
Windows `.exe` suffix are allowed everywhere; compilers also accept a target
triple prefix such as `arm-none-eabi-gcc`):

    clang       clang, clang++
    gcc         gcc, g++, cc, c++
    lldb        lldb
    gdb         gdb
    clang-tidy  clang-tidy
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Iterable, Sequence

from ..errors import ConfigError
from .models import ToolInvocation


class ToolKind(Enum):
    """Role a configured tool plays in the pipeline."""

    COMPILER = "compiler"
    DEBUGGER = "debugger"
    LINTER = "linter"

    def __str__(self) -> str:
        return self.value


class ToolFamily(Enum):
    """Tool families embargo knows how to drive."""

    CLANG = "clang"
    GCC = "gcc"
    LLDB = "lldb"
    GDB = "gdb"
    CLANG_TIDY = "clang-tidy"

    def __str__(self) -> str:
        return self.value


_VERSION = r"(?P<version>-\d+(?:\.\d+)*)?"
_TRIPLE = r"(?P<prefix>(?:[A-Za-z0-9_.]+-)*?)"

_FAMILY_PATTERNS: dict[ToolKind, tuple[tuple[ToolFamily, re.Pattern[str]], ...]] = {
    ToolKind.COMPILER: (
        (ToolFamily.CLANG, re.compile(rf"^{_TRIPLE}(?P<driver>clang\+\+|clang){_VERSION}$")),
        (ToolFamily.GCC, re.compile(rf"^{_TRIPLE}(?P<driver>g\+\+|gcc|c\+\+|cc){_VERSION}$")),
    ),
    ToolKind.DEBUGGER: (
        (ToolFamily.LLDB, re.compile(rf"^(?P<driver>lldb){_VERSION}$")),
        (ToolFamily.GDB, re.compile(rf"^(?P<driver>gdb){_VERSION}$")),
    ),
    ToolKind.LINTER: ((ToolFamily.CLANG_TIDY, re.compile(rf"^(?P<driver>clang-tidy){_VERSION}$")),),
}

# C driver -> C++ driver of the same family
_CXX_DRIVERS = {"clang": "clang++", "gcc": "g++", "cc": "c++"}

CXX_SOURCE_SUFFIXES = frozenset({".cpp", ".cc", ".cxx"})


@dataclass(frozen=True)
class ToolId:
    """A configured tool name bound to its family.

    Attributes:
        name: The name exactly as configured (used as the executable)
        kind: Compiler, debugger or linter
        family: Family that decides the argument conventions
        driver: Bare driver name without prefix/version (e.g. "g++")
    """

    name: str
    kind: ToolKind
    family: ToolFamily
    driver: str

    def __str__(self) -> str:
        return self.name

    @property
    def is_cxx_driver(self) -> bool:
        return self.driver in _CXX_DRIVERS.values()

    def cxx_driver_name(self) -> str:
        """Name of the C++ driver matching this compiler.

        `clang` -> `clang++`, `/opt/bin/gcc-13` -> `/opt/bin/g++-13`.
        Already-C++ drivers are returned unchanged.
        """
        if self.kind is not ToolKind.COMPILER or self.is_cxx_driver:
            return self.name
        path = PurePath(self.name)
        stem, exe = _split_exe_suffix(path.name)
        match = _match_family(ToolKind.COMPILER, stem)
        assert match is not None
        _family, m = match
        new_name = f"{m.group('prefix')}{_CXX_DRIVERS[self.driver]}{m.group('version') or ''}{exe}"
        return str(path.with_name(new_name)) if path.name != self.name else new_name


def _split_exe_suffix(basename: str) -> tuple[str, str]:
    if basename.lower().endswith(".exe"):
        return basename[:-4], basename[-4:]
    return basename, ""


def _match_family(kind: ToolKind, stem: str):
    for family, pattern in _FAMILY_PATTERNS[kind]:
        m = pattern.match(stem)
        if m:
            return family, m
    return None


def supported_names(kind: ToolKind) -> list[str]:
    """Bare driver names accepted for a tool kind (for error messages)."""
    names: list[str] = []
    for _family, pattern in _FAMILY_PATTERNS[kind]:
        alternatives = re.search(r"\(\?P<driver>([^)]*)\)", pattern.pattern)
        if alternatives:
            names.extend(a.replace("\\", "") for a in alternatives.group(1).split("|"))
    return names


def parse_tool(name: str, kind: ToolKind) -> ToolId:
    """Map a configured tool name to its family.

    Raises:
        ConfigError: If the name does not belong to a supported family
    """
    stem, _exe = _split_exe_suffix(PurePath(name).name)
    match = _match_family(kind, stem) if stem else None
    if match is None:
        raise ConfigError(f"unsupported {kind} '{name}' (supported: {', '.join(supported_names(kind))})")
    family, m = match
    return ToolId(name=name, kind=kind, family=family, driver=m.group("driver"))


def include_flags(include_dirs: Iterable[str]) -> list[str]:
    return [f"-I{d}" for d in include_dirs]


def compile_invocation(
    compiler: ToolId,
    source: str,
    output: str,
    flags: Sequence[str],
    include_dirs: Sequence[str],
    cwd: Path,
) -> ToolInvocation:
    """Compile one translation unit to an object file (clang and gcc share conventions)."""
    args = [*flags, *include_flags(include_dirs), "-c", source, "-o", output]
    return ToolInvocation(compiler.name, tuple(args), cwd)


def link_driver(compiler: ToolId, sources: Iterable[str]) -> str:
    """Executable used for linking.

    A C driver cannot link the C++ runtime, so projects with any C++ unit are
    linked with the family's C++ driver.
    """
    if any(Path(s).suffix in CXX_SOURCE_SUFFIXES for s in sources):
        return compiler.cxx_driver_name()
    return compiler.name


def link_invocation(
    compiler: ToolId,
    sources: Sequence[str],
    objects: Sequence[str],
    linker_flags: Sequence[str],
    output: str,
    cwd: Path,
) -> ToolInvocation:
    args = [*objects, *linker_flags, "-o", output]
    return ToolInvocation(link_driver(compiler, sources), tuple(args), cwd)


def debug_invocation(debugger: ToolId, artifact: str, cwd: Path) -> ToolInvocation:
    """Open the artifact in an interactive debugger session."""
    if debugger.family is ToolFamily.GDB:
        args: tuple[str, ...] = ("-q", artifact)
    else:
        args = (artifact,)
    return ToolInvocation(debugger.name, args, cwd)


def lint_invocation(
    linter: ToolId,
    files: Sequence[str],
    checks: Sequence[str],
    flags: Sequence[str],
    include_dirs: Sequence[str],
    cwd: Path,
) -> ToolInvocation:
    """Run clang-tidy over all files in one batch.

    Compile flags go after `--` so clang-tidy does not look for a
    compilation database.
    """
    args = [*files, f"-checks={','.join(checks)}", "--", *flags, *include_flags(include_dirs)]
    return ToolInvocation(linter.name, tuple(args), cwd)
