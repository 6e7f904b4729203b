"""Tests for the tool registry and argument builders."""

from pathlib import Path

import pytest

from embargo.errors import ConfigError
from embargo.toolchain.tools import (
    ToolFamily,
    ToolKind,
    compile_invocation,
    debug_invocation,
    link_driver,
    link_invocation,
    lint_invocation,
    parse_tool,
    supported_names,
)


class TestParseTool:
    @pytest.mark.parametrize(
        "name, family, driver",
        [
            ("clang", ToolFamily.CLANG, "clang"),
            ("clang++", ToolFamily.CLANG, "clang++"),
            ("clang-17", ToolFamily.CLANG, "clang"),
            ("clang++-17", ToolFamily.CLANG, "clang++"),
            ("gcc", ToolFamily.GCC, "gcc"),
            ("g++-13", ToolFamily.GCC, "g++"),
            ("cc", ToolFamily.GCC, "cc"),
            ("c++", ToolFamily.GCC, "c++"),
            ("arm-none-eabi-gcc", ToolFamily.GCC, "gcc"),
            ("/usr/local/bin/clang-18", ToolFamily.CLANG, "clang"),
            ("clang.exe", ToolFamily.CLANG, "clang"),
        ],
    )
    def test_compilers(self, name, family, driver):
        tool = parse_tool(name, ToolKind.COMPILER)

        assert tool.name == name
        assert tool.family is family
        assert tool.driver == driver

    def test_debuggers(self):
        assert parse_tool("lldb", ToolKind.DEBUGGER).family is ToolFamily.LLDB
        assert parse_tool("gdb", ToolKind.DEBUGGER).family is ToolFamily.GDB
        assert parse_tool("lldb-17", ToolKind.DEBUGGER).family is ToolFamily.LLDB

    def test_linter(self):
        assert parse_tool("clang-tidy-16", ToolKind.LINTER).family is ToolFamily.CLANG_TIDY

    @pytest.mark.parametrize("name", ["tcc", "msvc", "clang-tidy", "gdb", ""])
    def test_unsupported_compiler(self, name):
        with pytest.raises(ConfigError, match="unsupported compiler"):
            parse_tool(name, ToolKind.COMPILER)

    def test_error_lists_supported_names(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_tool("valgrind", ToolKind.DEBUGGER)
        assert "lldb" in str(exc_info.value)
        assert "gdb" in str(exc_info.value)

    def test_supported_names(self):
        assert supported_names(ToolKind.COMPILER) == ["clang++", "clang", "g++", "gcc", "c++", "cc"]


class TestCxxDriver:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("clang", "clang++"),
            ("clang++", "clang++"),
            ("gcc", "g++"),
            ("cc", "c++"),
            ("gcc-13", "g++-13"),
            ("arm-none-eabi-gcc", "arm-none-eabi-g++"),
            ("/opt/llvm/bin/clang-17", "/opt/llvm/bin/clang++-17"),
        ],
    )
    def test_cxx_driver_name(self, name, expected):
        assert parse_tool(name, ToolKind.COMPILER).cxx_driver_name() == expected

    def test_link_driver_c_only_project(self):
        gcc = parse_tool("gcc", ToolKind.COMPILER)
        assert link_driver(gcc, ["src/main.c", "src/util.c"]) == "gcc"

    def test_link_driver_cxx_project(self):
        clang = parse_tool("clang", ToolKind.COMPILER)
        assert link_driver(clang, ["src/main.cpp", "src/util.c"]) == "clang++"


class TestInvocations:
    cwd = Path("/project")

    def test_compile(self):
        clang = parse_tool("clang", ToolKind.COMPILER)
        invocation = compile_invocation(
            clang, "src/main.cpp", "build/debug/obj/src/main.cpp.o", ["-Wall", "-g"], ["include", "src"], self.cwd
        )

        assert invocation.argv == [
            "clang",
            "-Wall",
            "-g",
            "-Iinclude",
            "-Isrc",
            "-c",
            "src/main.cpp",
            "-o",
            "build/debug/obj/src/main.cpp.o",
        ]
        assert invocation.cwd == self.cwd

    def test_link(self):
        gcc = parse_tool("gcc", ToolKind.COMPILER)
        invocation = link_invocation(gcc, ["a.cpp"], ["obj/a.cpp.o"], ["-lm"], "build/debug/app", self.cwd)
        assert invocation.argv == ["g++", "obj/a.cpp.o", "-lm", "-o", "build/debug/app"]

    def test_debug_lldb(self):
        lldb = parse_tool("lldb", ToolKind.DEBUGGER)
        assert debug_invocation(lldb, "build/debug/app", self.cwd).argv == ["lldb", "build/debug/app"]

    def test_debug_gdb_is_quiet(self):
        gdb = parse_tool("gdb", ToolKind.DEBUGGER)
        assert debug_invocation(gdb, "build/debug/app", self.cwd).argv == ["gdb", "-q", "build/debug/app"]

    def test_lint(self):
        tidy = parse_tool("clang-tidy", ToolKind.LINTER)
        invocation = lint_invocation(
            tidy, ["src/a.cpp", "src/a.hpp"], ["clang-analyzer-*", "bugprone-*"], ["-Wall"], ["src"], self.cwd
        )
        assert invocation.argv == [
            "clang-tidy",
            "src/a.cpp",
            "src/a.hpp",
            "-checks=clang-analyzer-*,bugprone-*",
            "--",
            "-Wall",
            "-Isrc",
        ]

    def test_format(self):
        clang = parse_tool("clang", ToolKind.COMPILER)
        invocation = compile_invocation(clang, "a.c", "a.o", [], [], self.cwd)
        assert invocation.format() == "clang -c a.c -o a.o"
