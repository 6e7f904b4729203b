"""Init command - scaffolds a new project in a directory."""

import logging
from pathlib import Path
from typing import List

from ..config.embargo_config import config_path, resolve
from ..errors import ProjectExistsError, ProjectIOError
from ..output import log_detail, log_success
from .clangd_config import write_clangd_config

logger = logging.getLogger(__name__)

HELLO_WORLD = """#include <iostream>

int main() {
    std::cout << "Hello World!" << std::endl;
    return 0;
}
"""


def init_project(project_dir: Path) -> List[Path]:
    """
    Create src/main.cpp, include/ and an empty Embargo.toml, then the clangd
    configuration.

    An existing src/main.cpp is kept as it is.

    Args:
        project_dir: Directory to initialize (created if missing)

    Returns:
        Paths that were created

    Raises:
        ProjectExistsError: If the directory already has an Embargo.toml
        ProjectIOError: If a file or directory can't be created
    """
    toml_path = config_path(project_dir)
    if toml_path.exists():
        raise ProjectExistsError(f"can't init an already existing embargo project ({toml_path})")

    created: List[Path] = []
    main_path = project_dir / "src" / "main.cpp"
    try:
        main_path.parent.mkdir(parents=True, exist_ok=True)
        if not main_path.exists():
            main_path.write_text(HELLO_WORLD, encoding="utf-8")
            created.append(main_path)

        include_dir = project_dir / "include"
        if not include_dir.is_dir():
            include_dir.mkdir()
            created.append(include_dir)

        toml_path.write_text("", encoding="utf-8")
        created.append(toml_path)
    except OSError as e:
        raise ProjectIOError(f"can't initialize {project_dir}: {e}") from e

    for path in created:
        log_detail(f"created {path.relative_to(project_dir).as_posix()}")

    # The new Embargo.toml is empty, so the defaults apply.
    files = write_clangd_config(project_dir, resolve())
    created.extend([files.compile_flags, files.compile_commands])

    logger.debug(f"Initialized project in {project_dir}")
    log_success(f"Initialized embargo project in {project_dir}")
    return created
