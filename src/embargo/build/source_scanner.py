"""
Source file discovery.

The whole project root is scanned, not just src/, so a project that is a
single main.cpp next to its Embargo.toml builds without any layout. The
build/ output directory and hidden directories (.git, .cache, ...) are
skipped.

Paths are kept relative to the project root and sorted by their POSIX form,
so the compiler and linker argument vectors are identical from one run to
the next and from one machine to another.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List

from .. import BUILD_DIR_NAME
from ..errors import ProjectIOError
from .build_profiles import OBJECT_SUBDIR

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = frozenset({".c", ".cpp", ".cc", ".cxx"})
HEADER_SUFFIXES = frozenset({".h", ".hpp", ".hh", ".hxx"})

INCLUDE_DIR_NAMES = ("include", "src")


@dataclass(frozen=True)
class SourceUnit:
    """One compilable file.

    Attributes:
        path: Source path relative to the project root
        mtime_ns: Source modification time in nanoseconds
        object_path: Object file path relative to a profile directory
            (obj/src/main.cpp.o keeps the full file name so that
            a.c and a.cpp never share an object)
    """

    path: PurePosixPath
    mtime_ns: int
    object_path: PurePosixPath

    def object_in(self, profile_dir: Path) -> Path:
        return profile_dir / self.object_path


@dataclass
class SourceCollection:
    """Result of a project scan.

    Attributes:
        units: Compilable sources in deterministic order
        headers: Header paths relative to the project root, sorted
        header_mtimes_ns: Modification time of every header
    """

    units: List[SourceUnit] = field(default_factory=list)
    headers: List[PurePosixPath] = field(default_factory=list)
    header_mtimes_ns: List[int] = field(default_factory=list)

    @property
    def newest_header_mtime_ns(self) -> int | None:
        return max(self.header_mtimes_ns) if self.header_mtimes_ns else None

    def source_paths(self) -> List[str]:
        return [str(u.path) for u in self.units]

    def code_paths(self) -> List[str]:
        """Sources and headers, sorted together (what a linter looks at)."""
        return sorted([*self.source_paths(), *(str(h) for h in self.headers)])


def classify(path: Path) -> str:
    """Classify a file name as 'source', 'header' or 'other'."""
    suffix = path.suffix
    if suffix in SOURCE_SUFFIXES:
        return "source"
    if suffix in HEADER_SUFFIXES:
        return "header"
    return "other"


def _raise_walk_error(error: OSError) -> None:
    raise ProjectIOError(f"can't read {error.filename}: {error.strerror}") from error


class SourceScanner:
    """Walks a project tree and collects its sources and headers."""

    def __init__(self, project_dir: Path):
        """
        Initialize source scanner.

        Args:
            project_dir: Project root directory
        """
        self.project_dir = project_dir

    def _skip_dir(self, parent: Path, name: str) -> bool:
        if name.startswith("."):
            return True
        return parent == self.project_dir and name == BUILD_DIR_NAME

    def scan(self) -> SourceCollection:
        """
        Scan the project tree.

        Returns:
            SourceCollection with units and headers in lexicographic order

        Raises:
            ProjectIOError: If the project root (or a directory below it)
                can't be read
        """
        if not self.project_dir.is_dir():
            raise ProjectIOError(f"project directory not found: {self.project_dir}")

        sources: list[tuple[PurePosixPath, int]] = []
        headers: list[tuple[PurePosixPath, int]] = []

        for dirpath, dirnames, filenames in os.walk(self.project_dir, onerror=_raise_walk_error):
            parent = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not self._skip_dir(parent, d))

            for filename in filenames:
                full_path = parent / filename
                kind = classify(full_path)
                if kind == "other":
                    continue
                relative = PurePosixPath(full_path.relative_to(self.project_dir).as_posix())
                try:
                    mtime_ns = full_path.stat().st_mtime_ns
                except OSError as e:
                    raise ProjectIOError(f"can't stat {relative}: {e}") from e
                (sources if kind == "source" else headers).append((relative, mtime_ns))

        sources.sort(key=lambda item: str(item[0]))
        headers.sort(key=lambda item: str(item[0]))

        collection = SourceCollection(
            units=[
                SourceUnit(
                    path=path,
                    mtime_ns=mtime_ns,
                    object_path=PurePosixPath(OBJECT_SUBDIR) / f"{path}.o",
                )
                for path, mtime_ns in sources
            ],
            headers=[path for path, _ in headers],
            header_mtimes_ns=[mtime_ns for _, mtime_ns in headers],
        )
        logger.debug(
            f"Scanned {self.project_dir}: {len(collection.units)} sources, {len(collection.headers)} headers"
        )
        return collection

    def include_dirs(self) -> List[str]:
        """Conventional include directories that exist in the project (include/, src/)."""
        return [name for name in INCLUDE_DIR_NAMES if (self.project_dir / name).is_dir()]
