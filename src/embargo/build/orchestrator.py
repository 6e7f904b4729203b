"""
Build orchestration - turns a project directory into build/<profile>/app.

Phases:

    [1/3] Scanning sources   walk the project, collect sources and headers
    [2/3] Compiling          stale units only, in parallel, fail-fast
    [3/3] Linking            only when an object, the object list or the link
                             settings changed

The compiler/flag fingerprint of the profile (build_state.json) is checked
before anything is compiled. When it differs, the profile's objects are
deleted and the new compile settings are recorded right away, before the
first compile starts. Every object on disk was therefore produced with the
recorded settings, even after a build that failed halfway.
"""

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.embargo_config import EmbargoConfig, load_config
from ..errors import BuildError, ProjectIOError, ToolExecutionError
from ..output import (
    TimedLogger,
    log_artifact_path,
    log_build_complete,
    log_detail,
    log_file,
    log_phase,
    log_tool_output,
)
from ..toolchain.invoker import ToolchainInvoker
from ..toolchain.tools import compile_invocation, include_flags, link_driver
from .build_profiles import (
    BuildProfile,
    artifact_path,
    get_compile_flags,
    object_dir,
    print_profile_banner,
    profile_dir,
)
from .build_state import BuildState, BuildStateTracker, StalenessTracker
from .compilation_queue import CompilationJob, CompilationJobQueue
from .linker import Linker
from .source_scanner import SourceCollection, SourceScanner, SourceUnit

logger = logging.getLogger(__name__)

TOTAL_PHASES = 3


@dataclass(frozen=True)
class BuildArtifact:
    """Outcome of a successful build.

    Attributes:
        profile: Profile that was built
        path: Linked executable
        mtime_ns: Modification time of the executable after the build
        compiled: Number of units compiled by this build
        linked: Whether this build ran the link step
    """

    profile: BuildProfile
    path: Path
    mtime_ns: int
    compiled: int
    linked: bool


class BuildPipeline:
    """Scans, compiles and links one profile of a project."""

    def __init__(self, invoker: Optional[ToolchainInvoker] = None, jobs: Optional[int] = None):
        """
        Initialize build pipeline.

        Args:
            invoker: Invoker for compiler and linker calls
            jobs: Parallel compile jobs (default: EMBARGO_JOBS or CPU count)
        """
        self.invoker = invoker or ToolchainInvoker()
        self.jobs = jobs

    def build(
        self,
        config: Optional[EmbargoConfig],
        profile: BuildProfile,
        project_dir: Path,
    ) -> BuildArtifact:
        """
        Bring build/<profile>/app up to date.

        Args:
            config: Resolved configuration (None loads Embargo.toml)
            profile: Profile to build
            project_dir: Project root

        Returns:
            BuildArtifact describing the executable

        Raises:
            BuildError: If there is nothing to build or a compile/link fails
            ConfigError: If config is None and Embargo.toml is malformed
            ProjectIOError: If the project can't be read or build/ written
            ToolNotFoundError: If the compiler is not on PATH
            ToolLaunchError: If the compiler exists but cannot be started
        """
        start_time = time.time()
        if config is None:
            config = load_config(project_dir)

        print_profile_banner(profile, config.compiler.name)

        scanner = SourceScanner(project_dir)
        with TimedLogger("Scanning sources", phase=(1, TOTAL_PHASES)) as timed:
            sources = scanner.scan()
            include_dirs = scanner.include_dirs()
            timed.detail(f"{len(sources.units)} source units, {len(sources.headers)} headers")
        if not sources.units:
            raise BuildError("scan", f"no source files found in {project_dir}")

        out_dir = profile_dir(project_dir, profile)
        compile_flags = get_compile_flags(config, profile)
        current = BuildState(
            compiler=config.compiler.name,
            compile_flags=[*compile_flags, *include_flags(include_dirs)],
            linker=link_driver(config.compiler, sources.source_paths()),
            linker_flags=list(config.linker_flags),
            objects=[u.object_path.as_posix() for u in sources.units],
        )

        state_tracker = BuildStateTracker(out_dir)
        force = state_tracker.needs_recompile(current)
        if force:
            _needs_rebuild, reasons = state_tracker.check(current)
            for reason in reasons:
                log_detail(f"Rebuilding: {reason}", verbose_only=True)
            self._reset_objects(project_dir, profile)
            # Compile settings recorded now; linker left empty forces a relink.
            state_tracker.record(
                BuildState(compiler=current.compiler, compile_flags=list(current.compile_flags))
            )

        stale = StalenessTracker(sources, force=force).stale_units(profile, out_dir)

        with TimedLogger("Compiling", phase=(2, TOTAL_PHASES)) as timed:
            self._compile(project_dir, out_dir, config, compile_flags, include_dirs, sources, stale)
            timed.detail(f"{len(stale)} compiled, {len(sources.units) - len(stale)} up to date")

        artifact = artifact_path(project_dir, profile)
        objects = [u.object_in(out_dir) for u in sources.units]
        linked = False
        if stale or state_tracker.needs_relink(current) or _link_outdated(artifact, objects):
            with TimedLogger("Linking", phase=(3, TOTAL_PHASES)):
                linker = Linker(self.invoker, config.compiler, config.linker_flags)
                linker.link(project_dir, sources.source_paths(), objects, artifact)
            state_tracker.record(current)
            linked = True
        else:
            log_phase(3, TOTAL_PHASES, "Linking skipped, executable is up to date")

        try:
            mtime_ns = artifact.stat().st_mtime_ns
        except OSError as e:
            raise ProjectIOError(f"can't stat {artifact}: {e}") from e

        log_artifact_path(artifact)
        log_build_complete(time.time() - start_time)
        return BuildArtifact(profile=profile, path=artifact, mtime_ns=mtime_ns, compiled=len(stale), linked=linked)

    def _reset_objects(self, project_dir: Path, profile: BuildProfile) -> None:
        obj_dir = object_dir(project_dir, profile)
        if not obj_dir.exists():
            return
        logger.debug(f"Removing stale objects in {obj_dir}")
        try:
            shutil.rmtree(obj_dir)
        except OSError as e:
            raise ProjectIOError(f"can't remove {obj_dir}: {e}") from e

    def _compile(
        self,
        project_dir: Path,
        out_dir: Path,
        config: EmbargoConfig,
        compile_flags: List[str],
        include_dirs: List[str],
        sources: SourceCollection,
        stale: List[SourceUnit],
    ) -> None:
        stale_paths = {u.path for u in stale}
        for unit in sources.units:
            if unit.path not in stale_paths:
                log_file("compile", str(unit.path), cached=True, verbose_only=True)

        jobs = []
        for order, unit in enumerate(stale):
            output_path = unit.object_in(out_dir)
            temp_path = output_path.with_name(output_path.name + ".tmp")
            invocation = compile_invocation(
                config.compiler,
                str(unit.path),
                temp_path.relative_to(project_dir).as_posix(),
                compile_flags,
                include_dirs,
                project_dir,
            )
            jobs.append(
                CompilationJob(
                    job_id=str(unit.path),
                    order=order,
                    invocation=invocation,
                    output_path=output_path,
                    temp_path=temp_path,
                )
            )

        queue = CompilationJobQueue(self.invoker, num_workers=self.jobs)
        failures = queue.run(jobs, on_finished=_report_job)
        if not failures:
            return

        first = failures[0]
        if first.error is not None:
            raise first.error
        assert first.result is not None
        cause = ToolExecutionError(
            first.invocation.executable,
            first.result.exit_code,
            first.result.stdout,
            first.result.stderr,
        )
        raise BuildError(
            "compile",
            f"{first.job_id}: {cause.tool} exited with status {first.result.exit_code}",
            cause,
        )


def _report_job(job: CompilationJob) -> None:
    log_file("compile", job.job_id)
    # Warnings are shown for successful units too.
    log_tool_output(job.output)


def _link_outdated(artifact: Path, objects: List[Path]) -> bool:
    """True when the executable is missing or older than any object."""
    try:
        artifact_mtime_ns = artifact.stat().st_mtime_ns
    except FileNotFoundError:
        return True
    for obj in objects:
        try:
            if obj.stat().st_mtime_ns > artifact_mtime_ns:
                return True
        except FileNotFoundError:
            return True
    return False
