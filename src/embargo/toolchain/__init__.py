"""Tool registry and subprocess invocation for compilers, linkers, debuggers and linters."""

from .invoker import ToolchainInvoker
from .models import ExecutionResult, ToolInvocation
from .tools import ToolFamily, ToolId, ToolKind, parse_tool

__all__ = [
    "ExecutionResult",
    "ToolFamily",
    "ToolId",
    "ToolInvocation",
    "ToolKind",
    "ToolchainInvoker",
    "parse_tool",
]
