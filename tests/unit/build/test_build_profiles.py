"""Tests for build profiles."""

import sys
from pathlib import Path
from unittest.mock import patch

from embargo.build.build_profiles import (
    BuildProfile,
    artifact_path,
    format_profile_banner,
    get_compile_flags,
    object_dir,
    profile_dir,
)
from embargo.config.embargo_config import resolve


def test_profile_string_value():
    assert str(BuildProfile.DEBUG) == "debug"
    assert str(BuildProfile.RELEASE) == "release"


def test_compile_flags_per_profile():
    config = resolve({"flags": ["-Wall"], "debug-flags": ["-g", "-O0"], "release-flags": ["-O3"]})

    assert get_compile_flags(config, BuildProfile.DEBUG) == ["-Wall", "-g", "-O0"]
    assert get_compile_flags(config, BuildProfile.RELEASE) == ["-Wall", "-O3"]


def test_default_debug_flags():
    assert get_compile_flags(resolve(None), BuildProfile.DEBUG) == ["-Wall", "-Wextra", "-pedantic", "-g"]


def test_output_directories():
    project = Path("/proj")
    assert profile_dir(project, BuildProfile.RELEASE) == project / "build" / "release"
    assert object_dir(project, BuildProfile.DEBUG) == project / "build" / "debug" / "obj"


def test_artifact_path():
    with patch.object(sys, "platform", "linux"):
        assert artifact_path(Path("/proj"), BuildProfile.DEBUG) == Path("/proj/build/debug/app")


def test_artifact_path_windows():
    with patch.object(sys, "platform", "win32"):
        assert artifact_path(Path("/proj"), BuildProfile.RELEASE).name == "app.exe"


def test_format_profile_banner():
    assert format_profile_banner(BuildProfile.RELEASE, "gcc") == "PROFILE=release COMPILER=gcc"
    assert format_profile_banner(BuildProfile.DEBUG) == "PROFILE=debug"
