"""Build Profile Configuration.

Two profiles exist. Each one selects which of the configured flag sets is
appended to the common `flags` and which subdirectory of `build/` holds its
objects and executable:

    debug    flags + debug-flags     build/debug/
    release  flags + release-flags   build/release/

The profiles never mix: objects are kept per profile, so switching between
`embargo build` and `embargo release-build` never recompiles needlessly and
never links a debug object into a release executable.
"""

import sys
from enum import Enum
from pathlib import Path

from .. import BUILD_DIR_NAME
from ..config.embargo_config import EmbargoConfig

ARTIFACT_NAME = "app"
OBJECT_SUBDIR = "obj"


class BuildProfile(Enum):
    """Build profile enum for type-safe profile selection."""

    DEBUG = "debug"
    RELEASE = "release"

    def __str__(self) -> str:
        """Return the string value for directory names and display."""
        return self.value


def get_profile_flags(config: EmbargoConfig, profile: BuildProfile) -> tuple[str, ...]:
    """Flags appended to the common flags for a profile."""
    if profile is BuildProfile.RELEASE:
        return config.release_flags
    return config.debug_flags


def get_compile_flags(config: EmbargoConfig, profile: BuildProfile) -> list[str]:
    """Complete compile flag list for a profile: common flags, then profile flags."""
    return [*config.flags, *get_profile_flags(config, profile)]


def build_root(project_dir: Path) -> Path:
    return project_dir / BUILD_DIR_NAME


def profile_dir(project_dir: Path, profile: BuildProfile) -> Path:
    """Output directory for a profile, e.g. <project>/build/debug."""
    return build_root(project_dir) / profile.value


def object_dir(project_dir: Path, profile: BuildProfile) -> Path:
    return profile_dir(project_dir, profile) / OBJECT_SUBDIR


def artifact_filename() -> str:
    return f"{ARTIFACT_NAME}.exe" if sys.platform == "win32" else ARTIFACT_NAME


def artifact_path(project_dir: Path, profile: BuildProfile) -> Path:
    """Final linked executable for a profile."""
    return profile_dir(project_dir, profile) / artifact_filename()


def format_profile_banner(profile: BuildProfile, compiler: str | None = None) -> str:
    """Format a build profile banner for display.

    Args:
        profile: BuildProfile enum value
        compiler: Compiler name (optional)

    Returns:
        Formatted banner string
    """
    parts = [f"PROFILE={profile.value}"]
    if compiler:
        parts.append(f"COMPILER={compiler}")

    return " ".join(parts)


def print_profile_banner(profile: BuildProfile, compiler: str | None = None) -> None:
    """Print the build profile banner to the console."""
    from ..output import log

    log(format_profile_banner(profile, compiler=compiler))
