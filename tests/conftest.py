"""Pytest configuration and fixtures for embargo tests.

This conftest addresses Python 3.13 compatibility issues with pytest's capture fixtures.
Python 3.13 changed how stdout/stderr are handled, causing "I/O operation on closed file"
errors during test teardown. This is a known issue: https://github.com/pytest-dev/pytest/issues/11439

It also provides a fake toolchain: small Python scripts named like the real
tools (clang, clang++, gcc, g++, lldb, gdb, clang-tidy) placed first on PATH.
Every call is appended to a JSON-lines log so tests can assert on the exact
argument vectors without a real compiler installed.
"""

import io
import json
import os
import stat
import sys
import time
import warnings
from pathlib import Path

import pytest

from embargo import output

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


FAKE_COMPILER = """#!__PYTHON__
import json
import os
import sys

args = sys.argv[1:]
with open(os.environ["EMBARGO_FAKE_LOG"], "a") as f:
    f.write(json.dumps({"tool": os.path.basename(sys.argv[0]), "args": args}) + "\\n")

out = args[args.index("-o") + 1]
if "-c" in args:
    src = args[args.index("-c") + 1]
    fail = os.environ.get("EMBARGO_FAKE_FAIL")
    if fail and fail in src:
        sys.stderr.write(src + ":1:1: error: fake failure\\n")
        sys.exit(int(os.environ.get("EMBARGO_FAKE_FAIL_CODE", "1")))
    if os.environ.get("EMBARGO_FAKE_WARN"):
        sys.stderr.write(src + ":2:3: warning: fake warning\\n")
    with open(out, "w") as f:
        f.write("object " + src + "\\n")
else:
    if os.environ.get("EMBARGO_FAKE_LINK_FAIL"):
        sys.stderr.write("ld: fake link failure\\n")
        sys.exit(1)
    if os.environ.get("EMBARGO_FAKE_BAD_APP"):
        with open(out, "wb") as f:
            f.write(b"\\x00\\x01 not a program")
        os.chmod(out, 0o755)
        sys.exit(0)
    with open(out, "w") as f:
        f.write("#!/bin/sh\\nexit ${FAKE_APP_EXIT:-0}\\n")
    os.chmod(out, 0o755)
"""

FAKE_DEBUGGER = """#!__PYTHON__
import json
import os
import sys

with open(os.environ["EMBARGO_FAKE_LOG"], "a") as f:
    f.write(json.dumps({"tool": os.path.basename(sys.argv[0]), "args": sys.argv[1:]}) + "\\n")
sys.exit(int(os.environ.get("EMBARGO_FAKE_DEBUGGER_EXIT", "0")))
"""

FAKE_LINTER = """#!__PYTHON__
import json
import os
import signal
import sys

args = sys.argv[1:]
with open(os.environ["EMBARGO_FAKE_LOG"], "a") as f:
    f.write(json.dumps({"tool": os.path.basename(sys.argv[0]), "args": args}) + "\\n")
if os.environ.get("EMBARGO_FAKE_LINT_CRASH"):
    os.kill(os.getpid(), signal.SIGKILL)
files = args[: args.index("--")]
for name in files:
    if "bad" in name:
        print(name + ":3:5: warning: fake finding [bugprone-fake]")
        print(name + ":4:1: error: fake error [clang-diagnostic-error]")
print(str(len(files)) + " warnings generated.")
sys.exit(1 if any("bad" in n for n in files) else 0)
"""

_FAKE_TOOLS = {
    "clang": FAKE_COMPILER,
    "clang++": FAKE_COMPILER,
    "gcc": FAKE_COMPILER,
    "g++": FAKE_COMPILER,
    "lldb": FAKE_DEBUGGER,
    "gdb": FAKE_DEBUGGER,
    "clang-tidy": FAKE_LINTER,
}


class FakeToolchain:
    """Handle on the fake tools installed by the fake_toolchain fixture."""

    def __init__(self, bin_dir: Path, log_file: Path):
        self.bin_dir = bin_dir
        self.log_file = log_file

    def calls(self, tool: str | None = None) -> list[dict]:
        if not self.log_file.exists():
            return []
        records = [json.loads(line) for line in self.log_file.read_text().splitlines() if line]
        if tool is not None:
            records = [r for r in records if r["tool"] == tool]
        return records

    def compile_calls(self) -> list[dict]:
        return [r for r in self.calls() if "-c" in r["args"]]

    def link_calls(self) -> list[dict]:
        return [r for r in self.calls() if r["tool"] in ("clang", "clang++", "gcc", "g++") and "-c" not in r["args"]]

    def compiled_sources(self) -> list[str]:
        return sorted(r["args"][r["args"].index("-c") + 1] for r in self.compile_calls())

    def reset(self) -> None:
        self.log_file.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test.

    This prevents "I/O operation on closed file" errors in Python 3.13
    when tests raise exceptions that close stdout/stderr.
    """
    yield

    # Restore if they were closed during the test
    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's EMBARGO_* settings out of the tests."""
    monkeypatch.delenv("EMBARGO_JOBS", raising=False)
    monkeypatch.delenv("EMBARGO_STRICT_CONFIG", raising=False)


@pytest.fixture
def captured_output(monkeypatch):
    """Redirect embargo.output to a StringIO and return it."""
    stream = io.StringIO()
    monkeypatch.setattr(output, "_output_stream", stream)
    monkeypatch.setattr(output, "_verbose", False)
    return stream


@pytest.fixture
def fake_toolchain(tmp_path, monkeypatch):
    """Install the fake tools first on PATH."""
    if sys.platform == "win32":
        pytest.skip("fake toolchain scripts rely on shebang lines")

    bin_dir = tmp_path / "fake-bin"
    bin_dir.mkdir()
    for name, source in _FAKE_TOOLS.items():
        script = bin_dir / name
        script.write_text(source.replace("__PYTHON__", sys.executable))
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    log_file = tmp_path / "fake-tools.log"
    monkeypatch.setenv("EMBARGO_FAKE_LOG", str(log_file))
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return FakeToolchain(bin_dir, log_file)


def write_source(path: Path, text: str = "int x;\n", age: float = 1000.0) -> Path:
    """Write a file with a modification time `age` seconds in the past."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    past = time.time() - age
    os.utime(path, (past, past))
    return path


def touch_future(path: Path, ahead: float = 100.0) -> None:
    """Set a file's modification time into the future."""
    future = time.time() + ahead
    os.utime(path, (future, future))


@pytest.fixture
def write_file():
    return write_source


@pytest.fixture
def touch():
    return touch_future


@pytest.fixture
def cpp_project(tmp_path):
    """Project with two C++ units and one header, no Embargo.toml."""
    project = tmp_path / "project"
    write_source(project / "src" / "main.cpp", '#include "util.hpp"\nint main() { return util(); }\n')
    write_source(project / "src" / "util.cpp", "int util() { return 0; }\n")
    write_source(project / "include" / "util.hpp", "int util();\n")
    return project


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_call(item):  # noqa: ARG001
    """Wrap test execution to handle stdout/stderr closure gracefully."""
    yield

    # After test execution, ensure streams aren't closed
    if hasattr(sys.stdout, "closed") and sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if hasattr(sys.stderr, "closed") and sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.hookimpl(hookwrapper=True, trylast=True)
def pytest_runtest_teardown(item):  # noqa: ARG001
    """Ensure streams are restored during teardown phase."""
    yield

    # Final restoration after teardown
    if hasattr(sys.stdout, "closed") and sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if hasattr(sys.stderr, "closed") and sys.stderr.closed:
        sys.stderr = sys.__stderr__
