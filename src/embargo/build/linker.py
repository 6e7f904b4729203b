"""
Linker - links the objects of one profile into the final executable.

The compiler driver does the linking (there is no separate linker setting),
so the linker flags from Embargo.toml go straight to the driver after the
object files.
"""

import logging
from pathlib import Path
from typing import Sequence

from ..errors import BuildError, ProjectIOError, ToolExecutionError
from ..toolchain.invoker import ToolchainInvoker
from ..toolchain.tools import ToolId, link_invocation
from ..output import log_tool_output

logger = logging.getLogger(__name__)


class Linker:
    """Links object files to build/<profile>/app."""

    def __init__(self, invoker: ToolchainInvoker, compiler: ToolId, linker_flags: Sequence[str]):
        """
        Initialize linker.

        Args:
            invoker: Invoker used for the driver call
            compiler: Configured compiler; C++ projects use its C++ driver
            linker_flags: Flags placed after the objects
        """
        self.invoker = invoker
        self.compiler = compiler
        self.linker_flags = list(linker_flags)

    def link(self, project_dir: Path, sources: Sequence[str], objects: Sequence[Path], output_path: Path) -> Path:
        """
        Link objects into an executable.

        The driver writes `<output>.tmp` which replaces the output only when
        the link succeeded, so an executable is never left half written.

        Args:
            project_dir: Working directory of the driver
            sources: Project-relative sources (select the driver)
            objects: Object files in source order
            output_path: Final executable path

        Returns:
            output_path

        Raises:
            BuildError: If the driver fails
            ToolNotFoundError: If the driver is not on PATH
            ToolLaunchError: If the driver cannot be started
            ProjectIOError: If the executable cannot be written
        """
        temp_path = output_path.with_name(output_path.name + ".tmp")
        invocation = link_invocation(
            self.compiler,
            sources,
            [_relative(o, project_dir) for o in objects],
            self.linker_flags,
            _relative(temp_path, project_dir),
            project_dir,
        )
        logger.debug(f"Linking {len(objects)} objects with {invocation.executable}")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            result = self.invoker.invoke(invocation)
            log_tool_output(result.output)
            temp_path.replace(output_path)
        except ToolExecutionError as e:
            log_tool_output(e.diagnostics)
            raise BuildError("link", f"{e.tool} exited with status {e.returncode}", e) from e
        except OSError as e:
            raise ProjectIOError(f"can't write {output_path}: {e}") from e
        finally:
            temp_path.unlink(missing_ok=True)

        return output_path


def _relative(path: Path, project_dir: Path) -> str:
    try:
        return path.relative_to(project_dir).as_posix()
    except ValueError:
        return str(path)
