"""
Compilation Job Queue - parallel compilation with a bounded worker pool.

Translation units do not depend on each other (headers are covered by the
staleness check), so every stale unit is compiled as an independent job.
Linking waits for the whole batch.

Failure policy is fail-fast: once one job fails, jobs that have not started
are cancelled and no link happens. Jobs already running are allowed to
finish so their diagnostics can still be shown.

Each compiler writes to `<object>.tmp` and the file is renamed to its final
name only after the compiler succeeded. An interrupted or failed compile
therefore never leaves a truncated object that a later build would consider
up to date.
"""

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..errors import EmbargoError, ProjectIOError
from ..interrupt_utils import handle_keyboard_interrupt_properly, terminate_child_processes
from ..toolchain.invoker import ToolchainInvoker
from ..toolchain.models import ExecutionResult, ToolInvocation

logger = logging.getLogger(__name__)


class JobState(Enum):
    """State of a compilation job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class CompilationJob:
    """Single compilation job.

    Attributes:
        job_id: Source path, used for display and ordering
        order: Position of the source in the scan (failures are reported in
            this order, not in completion order)
        invocation: Compiler call writing to temp_path
        output_path: Final object path
        temp_path: Object path the compiler writes to
    """

    job_id: str
    order: int
    invocation: ToolInvocation
    output_path: Path
    temp_path: Path
    state: JobState = JobState.PENDING
    result: Optional[ExecutionResult] = None
    error: Optional[EmbargoError] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def duration(self) -> Optional[float]:
        """Get job duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None

    @property
    def output(self) -> str:
        return self.result.output if self.result else ""


def default_worker_count() -> int:
    """Worker count from EMBARGO_JOBS, else the CPU count."""
    env_jobs = os.environ.get("EMBARGO_JOBS")
    if env_jobs:
        try:
            return max(1, int(env_jobs))
        except ValueError:
            logger.warning(f"Ignoring invalid EMBARGO_JOBS={env_jobs!r}")
    return os.cpu_count() or 1


class CompilationJobQueue:
    """Runs a batch of compilation jobs on a thread pool."""

    def __init__(self, invoker: ToolchainInvoker, num_workers: Optional[int] = None):
        """Initialize compilation queue.

        Args:
            invoker: Invoker used for every compiler call
            num_workers: Number of worker threads (default: EMBARGO_JOBS or CPU count)
        """
        self.invoker = invoker
        self.num_workers = num_workers or default_worker_count()
        self._abort = threading.Event()
        logger.debug(f"CompilationJobQueue initialized with {self.num_workers} workers")

    def run(
        self,
        jobs: list[CompilationJob],
        on_finished: Optional[Callable[[CompilationJob], None]] = None,
    ) -> list[CompilationJob]:
        """Compile all jobs, stopping at the first failure.

        Args:
            jobs: Jobs to run
            on_finished: Called in the calling thread for each job that
                completed or failed, in completion order

        Returns:
            The failed jobs sorted by source order (empty on success)

        Raises:
            ProjectIOError: If an object directory cannot be created
        """
        if not jobs:
            return []

        self._abort.clear()
        for job in jobs:
            try:
                job.temp_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ProjectIOError(f"can't create object directory {job.temp_path.parent}: {e}") from e

        executor = ThreadPoolExecutor(max_workers=min(self.num_workers, len(jobs)), thread_name_prefix="compile")
        futures: dict[Future[None], CompilationJob] = {executor.submit(self._execute_job, job): job for job in jobs}
        pending = set(futures)
        try:
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    job = futures[future]
                    if future.cancelled() or job.state is JobState.CANCELLED:
                        job.state = JobState.CANCELLED
                        continue
                    future.result()
                    if on_finished:
                        on_finished(job)
                    if job.state is JobState.FAILED and not self._abort.is_set():
                        logger.debug(f"Job {job.job_id} failed, cancelling pending jobs")
                        self._abort.set()
                        for other in pending:
                            other.cancel()
        except KeyboardInterrupt:
            self._abort.set()
            for future in futures:
                future.cancel()
            terminate_child_processes()
            raise
        finally:
            executor.shutdown(wait=True)
            for job in jobs:
                if job.state is not JobState.COMPLETED:
                    job.temp_path.unlink(missing_ok=True)

        for future, job in futures.items():
            if future.cancelled():
                job.state = JobState.CANCELLED

        return sorted((j for j in jobs if j.state is JobState.FAILED), key=lambda j: j.order)

    def _execute_job(self, job: CompilationJob) -> None:
        """Execute single compilation job (worker thread)."""
        if self._abort.is_set():
            job.state = JobState.CANCELLED
            return

        job.state = JobState.RUNNING
        job.start_time = time.time()
        logger.debug(f"Compiling {job.job_id}: {job.invocation.format()}")
        try:
            job.result = self.invoker.invoke(job.invocation, check=False)
        except KeyboardInterrupt as ke:
            job.state = JobState.FAILED
            handle_keyboard_interrupt_properly(ke)
        except EmbargoError as e:
            job.error = e
            job.state = JobState.FAILED
            job.end_time = time.time()
            return

        job.end_time = time.time()
        if job.result.exit_code == 0:
            try:
                job.temp_path.replace(job.output_path)
            except OSError as e:
                job.error = ProjectIOError(f"can't write {job.output_path}: {e}")
                job.state = JobState.FAILED
                return
            job.state = JobState.COMPLETED
            logger.debug(f"Job {job.job_id} completed in {job.duration():.2f}s")
        else:
            job.state = JobState.FAILED
            logger.debug(f"Job {job.job_id} failed with exit code {job.result.exit_code}")
