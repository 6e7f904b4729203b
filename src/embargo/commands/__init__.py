"""Workflows other than building: lint, clangd-config, clean, init and show-config."""

from .clangd_config import write_clangd_config
from .clean import clean_project
from .init import init_project
from .lint import LintReport, run_lint
from .show_config import render_config, show_config

__all__ = [
    "LintReport",
    "clean_project",
    "init_project",
    "render_config",
    "run_lint",
    "show_config",
    "write_clangd_config",
]
