"""Clean command - removes the build directory of a project."""

import logging
import shutil
from pathlib import Path

from ..build.build_profiles import build_root
from ..errors import ProjectIOError
from ..output import log, log_success

logger = logging.getLogger(__name__)


def clean_project(project_dir: Path) -> bool:
    """Remove build/ with every profile in it.

    Embargo.toml is never read, so a project with a broken configuration can
    still be cleaned. Cleaning twice is not an error.

    Args:
        project_dir: Project root

    Returns:
        True if a build directory was removed

    Raises:
        ProjectIOError: If build/ exists but can't be removed
    """
    build_dir = build_root(project_dir)
    if not build_dir.exists():
        log("Nothing to clean")
        return False

    logger.debug(f"Removing {build_dir}")
    try:
        shutil.rmtree(build_dir)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise ProjectIOError(f"can't remove {build_dir}: {e}") from e

    log_success(f"Removed {build_dir}")
    return True
