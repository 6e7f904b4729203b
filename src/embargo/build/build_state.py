"""
Build state tracking and staleness decisions.

Two questions decide whether an object file can be reused:

1. Did the inputs of the compile change?  Compared by modification time:
   an object is stale when it is missing, older than its source, or older
   than ANY header in the project. embargo does not parse #include graphs;
   invalidating every unit when a header changes may recompile too much but
   never too little.

2. Did the way we compile change?  The compiler name and flag lists of the
   last successful build are stored in build/<profile>/build_state.json.
   Editing Embargo.toml therefore rebuilds everything, even though no source
   file was touched.

The state also lists the objects that went into the last link, so adding or
deleting a source file relinks even when no remaining object changed.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .build_profiles import BuildProfile
from .source_scanner import SourceCollection, SourceUnit

logger = logging.getLogger(__name__)

STATE_FILENAME = "build_state.json"


@dataclass
class BuildState:
    """How a profile was last built successfully."""

    compiler: str
    compile_flags: List[str] = field(default_factory=list)
    linker: str = ""
    linker_flags: List[str] = field(default_factory=list)
    objects: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BuildState":
        return cls(
            compiler=data["compiler"],
            compile_flags=list(data.get("compile_flags", [])),
            linker=data.get("linker", ""),
            linker_flags=list(data.get("linker_flags", [])),
            objects=list(data.get("objects", [])),
        )

    def save(self, state_file: Path) -> None:
        """Write the state atomically (temp file + rename)."""
        state_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = state_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        temp_file.replace(state_file)

    @classmethod
    def load(cls, state_file: Path) -> Optional["BuildState"]:
        """Load a saved state; None if missing or unreadable."""
        if not state_file.exists():
            return None
        try:
            with open(state_file, "r", encoding="utf-8") as f:
                return cls.from_dict(json.load(f))
        except (json.JSONDecodeError, OSError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable build state {state_file}: {e}")
            return None

    def compare(self, previous: Optional["BuildState"]) -> Tuple[bool, List[str]]:
        """
        Compare with the state of the previous build.

        Returns:
            (needs_full_rebuild, reasons)
        """
        if previous is None:
            return True, ["No previous build state found"]

        reasons = []
        if previous.compiler != self.compiler:
            reasons.append(f"Compiler changed: {previous.compiler} -> {self.compiler}")
        if previous.compile_flags != self.compile_flags:
            reasons.append("Compile flags changed")
        if previous.linker != self.linker:
            reasons.append(f"Linker changed: {previous.linker} -> {self.linker}")
        if previous.linker_flags != self.linker_flags:
            reasons.append("Linker flags changed")
        if previous.objects != self.objects:
            reasons.append("Object list changed")
        return bool(reasons), reasons


class StalenessTracker:
    """Decides which units of a scan must be recompiled.

    The newest header time is taken from the scan once, so checking N units
    costs N stat() calls on objects and nothing more.
    """

    def __init__(self, sources: SourceCollection, force: bool = False):
        """
        Args:
            sources: Result of the project scan
            force: Treat every unit as stale (e.g. after a flag change)
        """
        self.sources = sources
        self.force = force
        self._newest_header_ns = sources.newest_header_mtime_ns

    def needs_rebuild(self, unit: SourceUnit, profile: BuildProfile, artifact_dir: Path) -> bool:
        """
        Check whether a unit must be recompiled for a profile.

        Args:
            unit: Source unit from the scan
            profile: Profile being built (selects artifact_dir)
            artifact_dir: Profile output directory, e.g. build/debug

        Returns:
            True if the object is missing or older than its inputs
        """
        if self.force:
            return True

        object_file = unit.object_in(artifact_dir)
        try:
            object_mtime_ns = object_file.stat().st_mtime_ns
        except FileNotFoundError:
            logger.debug(f"[{profile}] {unit.path}: no object file")
            return True

        if unit.mtime_ns > object_mtime_ns:
            logger.debug(f"[{profile}] {unit.path}: source newer than object")
            return True

        if self._newest_header_ns is not None and self._newest_header_ns > object_mtime_ns:
            logger.debug(f"[{profile}] {unit.path}: a header is newer than the object")
            return True

        return False

    def stale_units(self, profile: BuildProfile, artifact_dir: Path) -> List[SourceUnit]:
        return [u for u in self.sources.units if self.needs_rebuild(u, profile, artifact_dir)]


class BuildStateTracker:
    """Loads, compares and records the per-profile BuildState."""

    def __init__(self, artifact_dir: Path):
        self.state_file = artifact_dir / STATE_FILENAME
        self.previous = BuildState.load(self.state_file)

    def check(self, current: BuildState) -> Tuple[bool, List[str]]:
        """Compare the current state with the saved one.

        Returns:
            (needs_rebuild, reasons); a first build has no saved state and
            reports a rebuild.
        """
        return current.compare(self.previous)

    def needs_recompile(self, current: BuildState) -> bool:
        """Every object is stale: no saved state, or compiler/compile flags changed."""
        if self.previous is None:
            return True
        return (self.previous.compiler, self.previous.compile_flags) != (current.compiler, current.compile_flags)

    def needs_relink(self, current: BuildState) -> bool:
        """The executable is stale even if no object changed.

        True when the link driver, the linker flags or the set of linked
        objects differ from the last successful link.
        """
        if self.previous is None:
            return True
        previous = (self.previous.linker, self.previous.linker_flags, self.previous.objects)
        return previous != (current.linker, current.linker_flags, current.objects)

    def record(self, current: BuildState) -> None:
        try:
            current.save(self.state_file)
            self.previous = current
        except OSError as e:
            # Only costs a full rebuild next time.
            logger.warning(f"Failed to save build state {self.state_file}: {e}")
